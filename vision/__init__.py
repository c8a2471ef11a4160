"""
Vision package.

Validates and normalizes crop photos before they are sent for analysis.
"""

from vision.image_utils import prepare_image_for_analysis

__all__ = [
    "prepare_image_for_analysis",
]
