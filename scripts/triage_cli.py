import os
import sys
import traceback

ROOT_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if ROOT_DIR not in sys.path:
    sys.path.insert(0, ROOT_DIR)

from escalation.classifier import classify
from escalation.matcher import find_best_expert
from escalation.models import Category, Location, MatchCriteria
from escalation.roster import DEFAULT_EXPERTS
from escalation.urgency import calculate_urgency_level


def print_header():
    print("\n" + "=" * 60)
    print("🌾 FARMER ADVISORY — Escalation Triage")
    print("Type a farmer query to see whether it needs an expert.")
    print("Prefix with '!' to escalate manually.")
    print("Type 'exit' or 'quit' to stop.")
    print("=" * 60 + "\n")


def ask_category() -> Category:
    raw = input(f"📂 Category {[c.value for c in Category]} [other]: ").strip().lower()
    try:
        return Category(raw or "other")
    except ValueError:
        print("⚠️  Unknown category, using 'other'.")
        return Category.OTHER


def print_decision(query: str, manual: bool):
    decision = classify(query, manual=manual)

    print("\n🚦 ESCALATE:", "YES" if decision.should_escalate else "no")

    if not decision.should_escalate:
        print("\n" + "-" * 60 + "\n")
        return

    print("\n⚠️  TRIGGERS:")
    for t in decision.triggers:
        extra = f" ({', '.join(t.keywords)})" if t.keywords else ""
        print(f"  - {t.description}{extra}")

    category = ask_category()
    district = input("📍 District (optional): ").strip()

    urgency = calculate_urgency_level(decision.severity, decision.triggers, category)
    print(f"\n📊 SEVERITY: {decision.severity.value.upper()}  |  URGENCY: {urgency}/5")

    expert = find_best_expert(
        MatchCriteria(
            category=category,
            location=Location(state="Kerala", district=district),
            severity=decision.severity,
        ),
        DEFAULT_EXPERTS,
    )

    print("\n🧑‍🌾 RECOMMENDED EXPERT:")
    if expert is None:
        print("  None available")
    else:
        print(f"  {expert.name} (⭐ {expert.rating}) | {', '.join(expert.specializations)}")
        print(f"  {expert.phone} | {expert.email}")

    print("\n" + "-" * 60 + "\n")


def main():
    print_header()

    while True:
        try:
            query = input("👨‍🌾 Query: ").strip()

            if not query:
                print("⚠️  Empty query. Try again.\n")
                continue

            if query.lower() in {"exit", "quit"}:
                print("\n👋 Exiting. Goodbye.")
                break

            manual = query.startswith("!")
            print_decision(query.lstrip("!").strip(), manual)

        except KeyboardInterrupt:
            print("\n\n👋 Interrupted. Exiting cleanly.")
            break

        except Exception as e:
            print("\n❌ SYSTEM ERROR")
            print(str(e))
            traceback.print_exc()
            print("\nSystem recovered. You can continue.\n")


if __name__ == "__main__":
    main()
