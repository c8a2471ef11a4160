"""
Knowledge package.

Static agricultural knowledge used to ground advisory answers.
"""

from knowledge.knowledge_base import (
    format_knowledge_context,
    get_knowledge_context,
    search_knowledge_base,
)

__all__ = [
    "search_knowledge_base",
    "get_knowledge_context",
    "format_knowledge_context",
]
