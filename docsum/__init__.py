"""
Document summarization pipeline.

Extracts plain text from PDF, DOCX and image uploads (EasyOCR for
images, with per-call engine lifecycle and progress reporting), then
summarizes it to HTML with an LLM.

Public API:
    extract_text       - Extract text from an UploadedFile
    extract_document   - Same, returning an ExtractionResult
    decode_image       - OCR an image, single language set
    generate_summary   - HTML summary of extracted text
    improve_summary    - Revise a summary with optional instructions
    ExtractionError    - The single extraction failure type
"""

from .extraction_pipeline import extract_document, extract_text, extract_text_sync
from .ocr import decode_image, decode_image_multilang
from .schemas import (
    DocumentKind,
    ExtractionResult,
    OcrProgressEvent,
    OcrStage,
    UploadedFile,
)
from .summarizer import SummarizationError, generate_summary, improve_summary
from .utils import ErrorKind, ExtractionError

__all__ = [
    "extract_text",
    "extract_document",
    "extract_text_sync",
    "decode_image",
    "decode_image_multilang",
    "generate_summary",
    "improve_summary",
    "DocumentKind",
    "ExtractionResult",
    "OcrProgressEvent",
    "OcrStage",
    "UploadedFile",
    "ErrorKind",
    "ExtractionError",
    "SummarizationError",
]
