"""
LLM package.

Wraps the hosted model client, advisory answers and image analysis.
"""

from llm.llm_client import LLMClient
from llm.advisor import FarmerAdvisor
from llm.image_analyzer import analyze_image, ImageAnalysisError

__all__ = [
    "LLMClient",
    "FarmerAdvisor",
    "analyze_image",
    "ImageAnalysisError",
]
