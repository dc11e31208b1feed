"""
pdf_decoder.py

Text-layer extraction for PDF uploads.

Each page's text fragments are taken in content-stream order and joined
with single spaces; pages are separated by a blank line. Fragments that
were laid out side by side (columns) may run together. No layout
analysis is attempted.
"""

import io
import logging
from typing import List, Sequence

from pypdf import PdfReader

from .utils import DecodeFailedError

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


def decode_pdf(data: bytes) -> str:
    """
    Extract the text layer of a PDF.

    Pages are processed in order 1..N. A page without text still
    contributes an empty segment, so page spacing is preserved.

    Raises:
        DecodeFailedError: If the bytes cannot be parsed as a PDF.
    """
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page_fragments(page) for page in reader.pages]
    except Exception as e:
        raise DecodeFailedError(f"Could not read PDF: {e}") from e

    logger.info("Decoded PDF text from %d page(s)", len(pages))
    return join_pages(pages)


def page_fragments(page) -> List[str]:
    """Text fragments on a page, in the order the content stream draws them."""
    fragments: List[str] = []

    def visitor(text, cm, tm, font_dict, font_size):
        # pypdf attaches line breaks to the fragment that ends a line
        text = text.strip() if text else ""
        if text:
            fragments.append(text)

    page.extract_text(visitor_text=visitor)
    return fragments


def join_pages(pages: Sequence[Sequence[str]]) -> str:
    return PAGE_SEPARATOR.join(" ".join(fragments) for fragments in pages).strip()
