"""
knowledge_base.py

Static agricultural knowledge base used to ground advisory answers.

Search is keyword based and deterministic:
- full query inside the title           → +10
- each entry keyword hit by a query word → +5
- each occurrence of a query word in the content → +1
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from config import KNOWLEDGE_TOP_K


MIN_QUERY_WORD_LENGTH = 3

NO_CONTEXT_MESSAGE = "No specific knowledge base entries found for this query."


class KnowledgeEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    category: str   # pest | disease | crop | weather | subsidy | market | soil | fertilizer
    title: str
    content: str
    keywords: Tuple[str, ...] = ()
    region: Optional[str] = None
    season: Optional[str] = None
    crop_type: Optional[str] = None
    severity: Optional[str] = None


# ============================================================
# ENTRIES
# ============================================================

DEFAULT_ENTRIES: Tuple[KnowledgeEntry, ...] = (
    KnowledgeEntry(
        id="pest-001",
        category="pest",
        title="Aphid Infestation Management",
        content="""Aphids are small, soft-bodied insects that feed on plant sap. Signs include curled leaves, sticky honeydew, and stunted growth.

Treatment:
- Spray with neem oil solution (2-3ml per liter water)
- Use insecticidal soap spray
- Introduce beneficial insects like ladybugs
- Remove heavily infested plant parts
- Apply systemic insecticides if severe (consult agricultural officer)

Prevention:
- Regular monitoring of crops
- Maintain proper plant spacing for air circulation
- Avoid over-fertilization with nitrogen
- Use reflective mulches to deter aphids""",
        keywords=("aphid", "insect", "pest", "sap", "honeydew", "neem oil", "ladybug"),
        severity="medium",
    ),
    KnowledgeEntry(
        id="pest-002",
        category="pest",
        title="Bollworm Control in Cotton",
        content="""Bollworms are major pests of cotton, causing significant yield losses by feeding on bolls and flowers.

Identification:
- Small holes in bolls and flowers
- Caterpillars inside damaged bolls
- Frass (insect droppings) near feeding sites

Management:
- Use pheromone traps for monitoring
- Apply Bt cotton varieties if available
- Spray with approved insecticides (follow label instructions)
- Practice crop rotation with non-host crops
- Remove and destroy damaged bolls

Critical: Contact agricultural extension officer for severe infestations""",
        keywords=("bollworm", "cotton", "caterpillar", "boll", "pheromone trap", "bt cotton"),
        crop_type="cotton",
        severity="high",
    ),
    KnowledgeEntry(
        id="disease-001",
        category="disease",
        title="Rice Blast Disease",
        content="""Rice blast is a fungal disease causing significant yield losses in rice crops.

Symptoms:
- Diamond-shaped lesions on leaves with gray centers
- Neck rot causing panicle breakage
- Node infection leading to lodging

Management:
- Use resistant varieties when available
- Avoid excessive nitrogen fertilization
- Ensure proper drainage in fields
- Apply fungicides like Tricyclazole or Carbendazim
- Remove infected plant debris
- Practice crop rotation

Timing: Apply preventive fungicides before flowering stage""",
        keywords=("rice blast", "fungal disease", "lesions", "panicle", "tricyclazole", "resistant varieties"),
        crop_type="rice",
        severity="high",
    ),
    KnowledgeEntry(
        id="weather-001",
        category="weather",
        title="Monsoon Preparation Guidelines",
        content="""Preparing crops for monsoon season is crucial for successful farming.

Pre-monsoon activities:
- Clean drainage channels and water outlets
- Prepare seedbeds for transplanting
- Stock up on fungicides and bactericides
- Repair farm equipment and storage facilities
- Plan crop calendar based on rainfall predictions

During monsoon:
- Monitor for waterlogging and take drainage measures
- Watch for disease outbreaks due to high humidity
- Avoid fertilizer application during heavy rains
- Protect harvested crops from moisture

Post-monsoon:
- Assess crop damage and plan recovery measures
- Apply post-emergence herbicides if needed
- Resume regular fertilization schedule""",
        keywords=("monsoon", "rainfall", "drainage", "waterlogging", "humidity", "seedbed"),
        season="monsoon",
    ),
    KnowledgeEntry(
        id="subsidy-001",
        category="subsidy",
        title="PM-KISAN Scheme Benefits",
        content="""PM-KISAN provides direct income support to farmer families.

Eligibility:
- All landholding farmer families
- Excludes institutional landholders
- Excludes farmers paying income tax

Benefits:
- ₹6,000 per year in three installments
- ₹2,000 every four months
- Direct transfer to bank accounts

Application process:
- Visit nearest Common Service Center (CSC)
- Provide Aadhaar card, bank details, land records
- Complete online registration
- Verify details with village revenue officer

Documents required:
- Aadhaar card
- Bank account details
- Land ownership documents
- Mobile number for SMS updates""",
        keywords=("pm-kisan", "subsidy", "income support", "aadhaar", "bank account", "land records"),
        region="india",
    ),
    KnowledgeEntry(
        id="market-001",
        category="market",
        title="Optimal Timing for Crop Sales",
        content="""Strategic timing of crop sales can significantly improve farmer income.

General principles:
- Avoid selling immediately after harvest when prices are lowest
- Monitor market trends and price forecasts
- Consider storage costs vs. potential price gains
- Diversify sales across different time periods

Storage considerations:
- Ensure proper drying to safe moisture levels
- Use appropriate storage structures
- Monitor for pest and disease issues
- Calculate storage costs vs. expected price increase

Market intelligence:
- Check daily prices on eNAM portal
- Follow commodity price trends
- Connect with farmer producer organizations (FPOs)
- Consider contract farming opportunities

Risk management:
- Don't store entire harvest - sell portions gradually
- Keep emergency funds for storage maintenance
- Have backup buyers identified""",
        keywords=("market timing", "crop sales", "storage", "enam", "price trends", "fpo"),
    ),
    KnowledgeEntry(
        id="soil-001",
        category="soil",
        title="Soil Testing and Nutrient Management",
        content="""Regular soil testing is essential for optimal crop nutrition and yield.

Soil testing process:
- Collect samples from multiple points in field
- Test every 2-3 years or when changing crops
- Get analysis from certified laboratories
- Understand NPK levels, pH, and organic matter content

Interpreting results:
- pH: 6.0-7.5 ideal for most crops
- Organic matter: Should be >1.5%
- NPK levels guide fertilizer recommendations
- Micronutrient deficiencies need specific attention

Soil improvement:
- Add organic matter through compost or FYM
- Use lime to correct acidic soils
- Apply gypsum for alkaline soils
- Practice crop rotation to maintain soil health
- Avoid over-tillage to prevent erosion

Nutrient management:
- Follow soil test recommendations
- Use balanced fertilizers
- Apply nutrients at right time and method
- Consider slow-release fertilizers""",
        keywords=("soil testing", "npk", "ph", "organic matter", "fertilizer", "lime", "gypsum"),
    ),
)


# ============================================================
# PUBLIC API
# ============================================================

def search_knowledge_base(
    query: str,
    category: Optional[str] = None,
    entries: Sequence[KnowledgeEntry] = DEFAULT_ENTRIES,
    top_k: int = KNOWLEDGE_TOP_K,
) -> List[KnowledgeEntry]:
    query_lower = (query or "").lower()
    if not query_lower.strip():
        return []

    words = [w for w in query_lower.split(" ") if len(w) >= MIN_QUERY_WORD_LENGTH]

    scored = []
    for entry in entries:
        if category and entry.category != category:
            continue

        title_match = query_lower in entry.title.lower()
        content_match = query_lower in entry.content.lower()
        keyword_hits = [
            k for k in entry.keywords
            if any(w in k.lower() for w in words)
        ]

        if not (title_match or content_match or keyword_hits):
            continue

        scored.append((entry, _score(entry, words, title_match, keyword_hits)))

    scored.sort(key=lambda pair: pair[1], reverse=True)
    return [entry for entry, _ in scored[:top_k]]


def get_knowledge_context(
    query: str,
    entries: Sequence[KnowledgeEntry] = DEFAULT_ENTRIES,
) -> str:
    return format_knowledge_context(search_knowledge_base(query, entries=entries))


def format_knowledge_context(relevant: Sequence[KnowledgeEntry]) -> str:
    """Prompt block for entries already found by search_knowledge_base."""
    if not relevant:
        return NO_CONTEXT_MESSAGE

    context = "\n\n---\n\n".join(
        f"**{entry.title}** ({entry.category})\n{entry.content}"
        for entry in relevant
    )
    return f"Relevant agricultural knowledge:\n\n{context}"


# ============================================================
# INTERNAL
# ============================================================

def _score(
    entry: KnowledgeEntry,
    words: List[str],
    title_match: bool,
    keyword_hits: List[str],
) -> int:
    score = 0

    if title_match:
        score += 10

    score += 5 * len(keyword_hits)

    content_lower = entry.content.lower()
    for w in words:
        score += content_lower.count(w)

    return score
