"""
image_analyzer.py

Crop image diagnosis via the hosted multimodal model.

Flow:
    raw upload → vision.prepare_image_for_analysis → Gemini (structured)
    → ImageAnalysis

The analysis feeds triage through its confidence and severity only.
"""

import logging
from typing import Optional

from config import IMAGE_ANALYSIS_PROMPT, IMAGE_MAX_TOKENS
from escalation.models import ImageAnalysis
from vision.image_utils import prepare_image_for_analysis


class ImageAnalysisError(RuntimeError):
    pass


def analyze_image(
    image_bytes: bytes,
    llm,
    filename: Optional[str] = None,
) -> ImageAnalysis:
    """
    Raises ValueError for unusable images and ImageAnalysisError when the
    model gives no usable answer.
    """

    prepared, mime_type = prepare_image_for_analysis(image_bytes)

    prompt = f"{IMAGE_ANALYSIS_PROMPT}\nImage filename: {filename or 'unknown'}"

    analysis = llm.generate_structured(
        prompt=prompt,
        image_bytes=prepared,
        mime_type=mime_type,
        schema=ImageAnalysis,
        max_tokens=IMAGE_MAX_TOKENS,
    )

    if analysis is None:
        logging.error(f"❌ No analysis returned for {filename or 'upload'}")
        raise ImageAnalysisError("Failed to analyze image")

    return analysis
