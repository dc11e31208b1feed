"""
preprocessor.py

OpenCV-based image cleanup run before OCR on uploaded photos and scans.

Each step is independently toggleable via config. The result is a
grayscale numpy array ready for the EasyOCR engine.
"""

import logging
from typing import Optional

import cv2
import numpy as np

from . import config

logger = logging.getLogger(__name__)


def preprocess_image(
    image: np.ndarray,
    enable_denoise: Optional[bool] = None,
    enable_contrast_enhancement: Optional[bool] = None,
    enable_deskew: Optional[bool] = None,
    target_dpi: Optional[int] = None,
) -> np.ndarray:
    """
    Run the preprocessing steps on a single image.

    Args:
        image: Input image as BGR numpy array.
        enable_denoise: Override config ENABLE_DENOISE.
        enable_contrast_enhancement: Override config ENABLE_CONTRAST_ENHANCEMENT.
        enable_deskew: Override config ENABLE_DESKEW.
        target_dpi: Override config TARGET_DPI.

    Returns:
        Preprocessed grayscale image.
    """
    if enable_denoise is None:
        enable_denoise = config.ENABLE_DENOISE
    if enable_contrast_enhancement is None:
        enable_contrast_enhancement = config.ENABLE_CONTRAST_ENHANCEMENT
    if enable_deskew is None:
        enable_deskew = config.ENABLE_DESKEW
    if target_dpi is None:
        target_dpi = config.TARGET_DPI

    result = to_grayscale(image)

    if enable_denoise:
        result = denoise(result)
        logger.debug("Denoising done")

    if enable_contrast_enhancement:
        result = enhance_contrast(result)
        logger.debug("Contrast enhancement done")

    if enable_deskew:
        result = deskew(result)

    return normalize_resolution(result, target_dpi=target_dpi)


def to_grayscale(image: np.ndarray) -> np.ndarray:
    """Convert image to grayscale. If already grayscale, return as-is."""
    if image.ndim == 2:
        return image
    if image.shape[2] == 1:
        return image[:, :, 0]
    if image.shape[2] == 4:
        return cv2.cvtColor(image, cv2.COLOR_BGRA2GRAY)
    return cv2.cvtColor(image, cv2.COLOR_BGR2GRAY)


def denoise(image: np.ndarray) -> np.ndarray:
    """Non-Local Means denoising; handles sensor noise in phone photos."""
    return cv2.fastNlMeansDenoising(image, h=10, templateWindowSize=7, searchWindowSize=21)


def enhance_contrast(image: np.ndarray) -> np.ndarray:
    """CLAHE contrast enhancement for faded or unevenly lit pages."""
    clahe = cv2.createCLAHE(clipLimit=2.0, tileGridSize=(8, 8))
    return clahe.apply(image)


def estimate_skew(image: np.ndarray) -> Optional[float]:
    """
    Angle in degrees of the dark content's bounding rectangle, in [-45, 45].

    Measured in image coordinates (y down), so a line rising to the right
    gives a negative angle; rotating by it levels the line. Returns None
    when there are too few dark pixels to measure.
    """
    ys, xs = np.where(image < 128)
    if len(xs) < 50:
        return None

    points = np.column_stack((xs, ys)).astype(np.float32)
    box = cv2.boxPoints(cv2.minAreaRect(points))
    # the longer side of the rectangle follows the text lines
    edges = [box[1] - box[0], box[2] - box[1]]
    dx, dy = max(edges, key=lambda e: float(np.hypot(e[0], e[1])))
    angle = float(np.degrees(np.arctan2(dy, dx)))

    if angle > 90:
        angle -= 180
    elif angle <= -90:
        angle += 180
    if angle > 45:
        angle -= 90
    elif angle < -45:
        angle += 90
    return angle


def deskew(image: np.ndarray) -> np.ndarray:
    """
    Correct small rotations using minAreaRect over dark pixels.

    Angles above 15 degrees are left alone; they are more likely an
    intentional rotation than scan skew.
    """
    angle = estimate_skew(image)
    if angle is None or abs(angle) > 15 or abs(angle) < 0.1:
        return image

    h, w = image.shape[:2]
    rotation_matrix = cv2.getRotationMatrix2D((w // 2, h // 2), angle, 1.0)
    rotated = cv2.warpAffine(
        image, rotation_matrix, (w, h),
        flags=cv2.INTER_CUBIC,
        borderMode=cv2.BORDER_REPLICATE,
    )

    logger.info("Deskewed by %.2f degrees", angle)
    return rotated


def normalize_resolution(image: np.ndarray, target_dpi: int = 300) -> np.ndarray:
    """
    Upscale low-resolution images towards an A4 page at target DPI.

    Uploads rarely carry reliable DPI metadata, so the page height is
    used as a proxy. Upscaling is capped at 3x.
    """
    expected_height = int(target_dpi * 11.69)

    h, w = image.shape[:2]
    if h >= expected_height:
        return image

    scale = min(expected_height / h, 3.0)
    if scale <= 1.05:
        return image

    new_w = int(w * scale)
    new_h = int(h * scale)

    logger.info("Upscaling image from %dx%d to %dx%d (%.1fx)", w, h, new_w, new_h, scale)
    return cv2.resize(image, (new_w, new_h), interpolation=cv2.INTER_CUBIC)
