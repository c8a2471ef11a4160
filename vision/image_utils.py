# vision/image_utils.py

from typing import Tuple

import cv2
import numpy as np

from config import JPEG_QUALITY, MAX_IMAGE_EDGE, MIN_IMAGE_AREA


# =========================
# DECODE
# =========================

def decode_image(image_bytes: bytes) -> np.ndarray:
    if not image_bytes:
        raise ValueError("Empty image payload")

    buffer = np.frombuffer(image_bytes, dtype=np.uint8)
    image = cv2.imdecode(buffer, cv2.IMREAD_COLOR)

    if image is None:
        raise ValueError("Unsupported or corrupt image")

    return image


# =========================
# RESIZE
# =========================

def limit_size(image: np.ndarray, max_edge: int = MAX_IMAGE_EDGE) -> np.ndarray:
    h, w = image.shape[:2]
    longest = max(h, w)

    if longest <= max_edge:
        return image

    scale = max_edge / longest
    new_w = max(int(w * scale), 1)
    new_h = max(int(h * scale), 1)

    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_AREA)


# =========================
# MAIN PIPELINE
# =========================

def prepare_image_for_analysis(image_bytes: bytes) -> Tuple[bytes, str]:
    """
    Decode → size guard → downscale → JPEG.
    Returns (jpeg_bytes, mime_type). Raises ValueError for unusable images.
    """

    image = decode_image(image_bytes)

    h, w = image.shape[:2]
    if h * w < MIN_IMAGE_AREA:
        raise ValueError("Image is too small to analyze")   # 🔑 thumbnails give junk diagnoses

    image = limit_size(image)

    ok, encoded = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, JPEG_QUALITY])
    if not ok:
        raise ValueError("Failed to encode image")

    return encoded.tobytes(), "image/jpeg"
