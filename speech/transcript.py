"""
transcript.py

Validation of voice queries.

Voice input is transcribed on the farmer's device; the service receives
the transcript and, when the recognizer reports one, its confidence.

PURPOSE:
- Refuse transcripts too short or too uncertain to act on
- Ask the farmer to repeat instead of triaging noise

DESIGN:
- Deterministic
- Transparent reason codes
"""

from __future__ import annotations

from typing import Dict, Optional

from config import MIN_TRANSCRIPT_CONFIDENCE, MIN_TRANSCRIPT_WORDS


def validate_transcript(
    text: Optional[str],
    confidence: Optional[float] = None,
) -> Dict[str, object]:
    """
    Returns:
    {
        "is_valid": bool,
        "reason": str | None
    }

    A missing confidence is accepted: not every recognizer reports one.
    """

    text = (text or "").strip()

    if not text:
        return _fail("empty_transcription")

    if len(text.split()) < MIN_TRANSCRIPT_WORDS:
        return _fail("transcription_too_short")

    if confidence is not None and confidence < MIN_TRANSCRIPT_CONFIDENCE:
        return _fail("low_transcription_confidence")

    return {
        "is_valid": True,
        "reason": None,
    }


def _fail(reason: str) -> Dict[str, object]:
    return {
        "is_valid": False,
        "reason": reason,
    }
