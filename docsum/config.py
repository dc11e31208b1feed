"""
config.py

Configuration module for the document summarization pipeline.

Purpose:
--------
Contains the constants and settings used across the package:
accepted media types, OCR engine parameters, preprocessing toggles,
confidence thresholds, upload limits and the LLM client settings.

Design Principle:
-----------------
Configuration is isolated from business logic.
Changing thresholds or toggling preprocessing steps should
not require editing core extraction code.
"""

import os

from dotenv import load_dotenv

load_dotenv()

# -----------------------------
# Media types
# -----------------------------
PDF_MEDIA_TYPE = "application/pdf"
DOCX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)
IMAGE_MEDIA_PREFIX = "image/"

# -----------------------------
# OCR Engine
# -----------------------------
OCR_LANGUAGES = ["eng"]
USE_GPU = os.getenv("DOCSUM_USE_GPU", "true").lower() == "true"
MODEL_STORAGE_DIR = os.getenv("DOCSUM_MODEL_DIR") or None
DOWNLOAD_ENABLED = True

# Scripts written right-to-left; lines are read from the right edge
RTL_LANGUAGES = {"ar", "fa", "ur", "ug"}

# -----------------------------
# Preprocessing
# -----------------------------
ENABLE_PREPROCESSING = True
TARGET_DPI = 300
ENABLE_DESKEW = True
ENABLE_DENOISE = True
ENABLE_CONTRAST_ENHANCEMENT = True

# -----------------------------
# Confidence Thresholds
# -----------------------------
# EasyOCR scores are 0-1; outcomes are reported on a 0-100 scale
LOW_CONFIDENCE_THRESHOLD = 60.0

# -----------------------------
# Extraction
# -----------------------------
_timeout = os.getenv("DOCSUM_EXTRACTION_TIMEOUT")
EXTRACTION_TIMEOUT_SECONDS = float(_timeout) if _timeout else None

# -----------------------------
# Security
# -----------------------------
MAX_FILE_SIZE_MB = 50
EXTENSION_MEDIA_TYPES = {
    ".pdf": PDF_MEDIA_TYPE,
    ".docx": DOCX_MEDIA_TYPE,
    ".png": "image/png",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".tiff": "image/tiff",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
}

# -----------------------------
# Summarization (LLM)
# -----------------------------
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
LLM_MODEL = os.getenv("DOCSUM_LLM_MODEL", "llama-3.3-70b-versatile")
LLM_TEMPERATURE = 0.7
LLM_MAX_TOKENS = 1500
LLM_MAX_RETRIES = 2
MAX_INPUT_CHARS = 12000
USE_MOCK_AI = (
    not GROQ_API_KEY or os.getenv("DOCSUM_USE_MOCK_AI", "").lower() == "true"
)
