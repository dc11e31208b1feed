"""
extraction_pipeline.py

Main orchestrator for file-to-text extraction.

Classifies an upload by its declared media type, runs exactly one
decoder, and surfaces every failure as a single ExtractionError.
No content sniffing and no retries happen at this layer.
"""

import asyncio
import logging
from typing import Optional, Sequence

from . import config
from .docx_decoder import decode_docx
from .ocr import decode_image, decode_image_multilang
from .pdf_decoder import decode_pdf
from .progress import ProgressSink
from .schemas import DocumentKind, ExtractionResult, UploadedFile
from .utils import ErrorKind, ExtractionError, UnsupportedTypeError

logger = logging.getLogger(__name__)

_UNSET = object()


def classify(media_type: str) -> DocumentKind:
    """
    Map a declared media type to a DocumentKind.

    PDF and DOCX must match exactly; any ``image/*`` type is an image.

    Raises:
        UnsupportedTypeError: For every other media type.
    """
    if media_type == config.PDF_MEDIA_TYPE:
        return DocumentKind.PDF
    if media_type == config.DOCX_MEDIA_TYPE:
        return DocumentKind.DOCX
    if media_type.startswith(config.IMAGE_MEDIA_PREFIX):
        return DocumentKind.IMAGE
    raise UnsupportedTypeError(f"Unsupported file type: {media_type or 'unknown'}")


async def extract_document(
    file: UploadedFile,
    progress_sink: Optional[ProgressSink] = None,
    languages: Optional[Sequence[str]] = None,
    timeout=_UNSET,
) -> ExtractionResult:
    """
    Extract plain text from an uploaded file.

    Args:
        file: The upload. It is read once and not retained.
        progress_sink: Receives OCR progress events; only used for images.
        languages: OCR languages. If given, the multi-language decoder is
            used; otherwise config.OCR_LANGUAGES with the standard decoder.
        timeout: Seconds before the call is abandoned. Defaults to
            config.EXTRACTION_TIMEOUT_SECONDS; None means no limit.

    Raises:
        ExtractionError: For every failure, with ``kind`` set to the
            underlying ErrorKind.
    """
    if timeout is _UNSET:
        timeout = config.EXTRACTION_TIMEOUT_SECONDS

    logger.info("Extracting text from %s (%s, %d bytes)", file.name, file.media_type, file.size)

    try:
        kind = classify(file.media_type)
        text = await asyncio.wait_for(
            _decode(kind, file.data, progress_sink, languages), timeout
        )
    except asyncio.TimeoutError as e:
        logger.error("Extraction timed out after %ss: %s", timeout, file.name)
        raise ExtractionError(
            f"Failed to extract text: timed out after {timeout} seconds",
            kind=ErrorKind.TIMED_OUT,
        ) from e
    except Exception as e:
        logger.error("Error extracting text from file: %s", e)
        raise ExtractionError(
            f"Failed to extract text: {e}",
            kind=getattr(e, "kind", ErrorKind.DECODE_FAILED),
        ) from e

    logger.info("Extracted %d chars from %s (%s)", len(text), file.name, kind.value)
    return ExtractionResult(text=text, kind=kind, file_name=file.name)


async def extract_text(
    file: UploadedFile,
    progress_sink: Optional[ProgressSink] = None,
    languages: Optional[Sequence[str]] = None,
    timeout=_UNSET,
) -> str:
    """Text-only form of extract_document."""
    result = await extract_document(file, progress_sink, languages, timeout)
    return result.text


def extract_text_sync(
    file: UploadedFile,
    progress_sink: Optional[ProgressSink] = None,
    languages: Optional[Sequence[str]] = None,
    timeout=_UNSET,
) -> str:
    """Blocking wrapper for callers without an event loop."""
    return asyncio.run(extract_text(file, progress_sink, languages, timeout))


async def _decode(
    kind: DocumentKind,
    data: bytes,
    progress_sink: Optional[ProgressSink],
    languages: Optional[Sequence[str]],
) -> str:
    if kind is DocumentKind.PDF:
        return await asyncio.to_thread(decode_pdf, data)
    if kind is DocumentKind.DOCX:
        return await asyncio.to_thread(decode_docx, data)
    if languages:
        return await decode_image_multilang(data, languages, progress_sink)
    return await decode_image(data, config.OCR_LANGUAGES, progress_sink)
