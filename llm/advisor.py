"""
advisor.py

Farmer advisory answers grounded in the static knowledge base.

Confidence is not produced by the model. It is fixed per outcome so that
triage sees a stable signal:
- answer backed by knowledge entries  → GROUNDED_ANSWER_CONFIDENCE
- answer from general model knowledge → UNGROUNDED_ANSWER_CONFIDENCE
- model failure                       → FAILED_ANSWER_CONFIDENCE
"""

from typing import Dict

from config import (
    CHAT_MAX_TOKENS,
    CHAT_TEMPERATURE,
    FAILED_ANSWER_CONFIDENCE,
    GROUNDED_ANSWER_CONFIDENCE,
    SYSTEM_PROMPT,
    UNGROUNDED_ANSWER_CONFIDENCE,
)
from knowledge.knowledge_base import format_knowledge_context, search_knowledge_base
from llm.llm_client import FALLBACK_ANSWER


class FarmerAdvisor:

    def __init__(self, llm):
        self.llm = llm

    def answer(self, query: str) -> Dict:
        hits = search_knowledge_base(query)
        context = format_knowledge_context(hits)

        user_prompt = f"{context}\n\nFarmer question:\n{query.strip()}"

        text = self.llm.generate(
            system_prompt=SYSTEM_PROMPT,
            user_prompt=user_prompt,
            temperature=CHAT_TEMPERATURE,
            max_tokens=CHAT_MAX_TOKENS,
        )

        if not text:
            return {
                "answer": FALLBACK_ANSWER,
                "confidence": FAILED_ANSWER_CONFIDENCE,
                "knowledge_hits": [],
            }

        return {
            "answer": text,
            "confidence": GROUNDED_ANSWER_CONFIDENCE if hits else UNGROUNDED_ANSWER_CONFIDENCE,
            "knowledge_hits": [entry.id for entry in hits],
        }
