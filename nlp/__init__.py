"""
NLP package.

Query language detection.
"""

from nlp.language_detector import detect_language, speaks_language

__all__ = [
    "detect_language",
    "speaks_language",
]
