"""
Speech package.

Validates voice-query transcripts before triage.
"""

from speech.transcript import validate_transcript

__all__ = [
    "validate_transcript",
]
