"""
utils.py

Error taxonomy, file I/O, validation and security checks for the
extraction pipeline.

Handles:
- The exception hierarchy shared by decoders and the dispatcher
- Loading an upload from disk (path sanitization, size limits)
- Mapping file extensions to declared media types
- Decoding image bytes into arrays for the OCR engine
"""

import io
import logging
from enum import Enum
from pathlib import Path
from typing import Optional, Union

import numpy as np
from PIL import Image

from . import config
from .schemas import UploadedFile

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    UNSUPPORTED_TYPE = "unsupported_type"
    DECODE_FAILED = "decode_failed"
    NO_TEXT_RECOGNIZED = "no_text_recognized"
    RECOGNITION_FAILED = "recognition_failed"
    OCR_PROCESSING_FAILED = "ocr_processing_failed"
    ENGINE_TERMINATION_FAILED = "engine_termination_failed"
    TIMED_OUT = "timed_out"


class DocumentError(Exception):
    """Base class for decoder-level failures."""

    kind = ErrorKind.DECODE_FAILED


class UnsupportedTypeError(DocumentError):
    """Raised when a media type matches none of the decodable kinds."""

    kind = ErrorKind.UNSUPPORTED_TYPE


class DecodeFailedError(DocumentError):
    """Raised when PDF or DOCX parsing fails."""

    kind = ErrorKind.DECODE_FAILED


class NoTextRecognizedError(DocumentError):
    """Raised when OCR completes but yields no text."""

    kind = ErrorKind.NO_TEXT_RECOGNIZED


class RecognitionFailedError(DocumentError):
    kind = ErrorKind.RECOGNITION_FAILED


class OcrProcessingError(DocumentError):
    kind = ErrorKind.OCR_PROCESSING_FAILED


class ExtractionError(Exception):
    """
    The single failure surfaced by the extraction dispatcher.

    ``kind`` carries the ErrorKind of the underlying failure so callers
    can branch without inspecting the exception chain.
    """

    def __init__(self, message: str, kind: ErrorKind = ErrorKind.DECODE_FAILED):
        super().__init__(message)
        self.kind = kind


class UploadFileError(Exception):
    """Raised when an upload fails validation."""

    pass


class UploadSecurityError(Exception):
    """Raised when a security check fails (e.g., path traversal)."""

    pass


def sanitize_path(file_path: Union[str, Path]) -> Path:
    """
    Validate and sanitize a file path.

    Raises:
        UploadSecurityError: If path traversal or a symlink is detected.
        UploadFileError: If file does not exist or is not a regular file.
    """
    raw = str(file_path)
    if ".." in Path(raw).parts:
        raise UploadSecurityError(f"Path traversal detected in: {raw}")

    path = Path(file_path)
    if path.is_symlink():
        raise UploadSecurityError(f"Symlinks are not allowed: {path}")

    path = path.resolve()
    if not path.exists():
        raise UploadFileError(f"File not found: {path}")

    if not path.is_file():
        raise UploadFileError(f"Not a regular file: {path}")

    return path


def media_type_for(path: Path) -> str:
    """
    Declared media type for a file, based on its extension only.

    Unknown extensions map to application/octet-stream, which the
    dispatcher rejects.
    """
    return config.EXTENSION_MEDIA_TYPES.get(
        path.suffix.lower(), "application/octet-stream"
    )


def load_upload(
    file_path: Union[str, Path], media_type: Optional[str] = None
) -> UploadedFile:
    """
    Read a file from disk into an UploadedFile.

    Args:
        file_path: Path to the document.
        media_type: Declared media type. Guessed from the extension if omitted.

    Raises:
        UploadFileError: If the file is empty, too large or unreadable.
        UploadSecurityError: If path validation fails.
    """
    path = sanitize_path(file_path)

    size = path.stat().st_size
    if size == 0:
        raise UploadFileError(f"File is empty: {path}")

    size_mb = size / (1024 * 1024)
    if size_mb > config.MAX_FILE_SIZE_MB:
        raise UploadFileError(
            f"File too large: {size_mb:.1f}MB exceeds "
            f"limit of {config.MAX_FILE_SIZE_MB}MB"
        )

    try:
        data = path.read_bytes()
    except OSError as e:
        raise UploadFileError(f"Failed to read {path.name}: {e}") from e

    declared = media_type or media_type_for(path)
    logger.info("Loaded upload: %s (%s, %d bytes)", path.name, declared, size)
    return UploadedFile(data=data, media_type=declared, name=path.name)


def decode_image_bytes(data: bytes) -> np.ndarray:
    """
    Decode raw image bytes into a BGR numpy array for OpenCV.

    Raises whatever Pillow raises for unreadable data; the OCR decoder
    wraps it.
    """
    with Image.open(io.BytesIO(data)) as img:
        img_rgb = img.convert("RGB")
    arr = np.array(img_rgb)
    # Convert RGB to BGR for OpenCV compatibility
    arr_bgr = arr[:, :, ::-1].copy()
    logger.debug("Decoded image: %dx%d", arr_bgr.shape[1], arr_bgr.shape[0])
    return arr_bgr
