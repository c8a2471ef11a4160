"""
language_detector.py

Language detection for farmer queries.

Used to tag escalation cases so the assigned expert knows which language
to reply in, and to check whether an expert speaks it.

IMPORTANT:
- Short queries are unreliable by definition
- 'unknown' is a valid answer and must be handled downstream
"""

from typing import Dict, Iterable

from langdetect import DetectorFactory, LangDetectException, detect_langs


# deterministic results for the same input
DetectorFactory.seed = 0


# ============================================================
# LANGUAGES SPOKEN ON THE EXPERT ROSTER
# ============================================================

# ISO 639-1 → roster language name
SUPPORTED_LANGUAGES = {
    "en": "English",
    "hi": "Hindi",
    "ml": "Malayalam",
    "ta": "Tamil",
    "kn": "Kannada",
    "te": "Telugu",
    "mr": "Marathi",
    "bn": "Bengali",
}


# ============================================================
# DETECTION RULES
# ============================================================

MIN_CONFIDENCE = 0.70
MIN_TEXT_LENGTH = 4


# ============================================================
# PUBLIC API
# ============================================================

def detect_language(text: str) -> Dict[str, object]:
    """
    Returns:
    {
        "language": "ml" | "en" | ... | "unknown",
        "language_name": "Malayalam" | None,
        "confidence": 0.93,
        "is_reliable": True
    }

    Never raises.
    """

    if not text or len(text.strip()) < MIN_TEXT_LENGTH:
        return _unknown()

    try:
        detections = detect_langs(text)
    except LangDetectException:
        return _unknown()

    if not detections:
        return _unknown()

    top = detections[0]
    confidence = round(top.prob, 3)

    if confidence < MIN_CONFIDENCE:
        return _unknown(confidence)

    name = SUPPORTED_LANGUAGES.get(top.lang)
    if not name:
        return _unknown(confidence)

    return {
        "language": top.lang,
        "language_name": name,
        "confidence": confidence,
        "is_reliable": True,
    }


def speaks_language(languages: Iterable[str], language_name) -> bool:
    """Whether a roster language list covers the detected language."""
    if not language_name:
        return False
    wanted = language_name.lower()
    return any(lang.lower() == wanted for lang in languages)


# ============================================================
# INTERNAL
# ============================================================

def _unknown(confidence: float = 0.0) -> Dict[str, object]:
    return {
        "language": "unknown",
        "language_name": None,
        "confidence": round(confidence, 3),
        "is_reliable": False,
    }
