"""
docx_decoder.py

Raw-text extraction for DOCX uploads.

The value is returned verbatim: it is not trimmed and may be empty.
"""

import io
import logging
from typing import Iterator

from docx import Document
from docx.table import Table

from .utils import DecodeFailedError

logger = logging.getLogger(__name__)

PARAGRAPH_TERMINATOR = "\n\n"


def decode_docx(data: bytes) -> str:
    """
    Extract raw text from a DOCX body.

    Every paragraph, including those inside table cells, is emitted in
    document order followed by a blank line.

    Raises:
        DecodeFailedError: If the bytes are not a readable DOCX package.
    """
    try:
        document = Document(io.BytesIO(data))
        text = "".join(
            paragraph + PARAGRAPH_TERMINATOR for paragraph in _iter_paragraph_text(document)
        )
    except Exception as e:
        raise DecodeFailedError(f"Could not read DOCX: {e}") from e

    logger.info("Decoded DOCX text (%d chars)", len(text))
    return text


def _iter_paragraph_text(container) -> Iterator[str]:
    for block in container.iter_inner_content():
        if isinstance(block, Table):
            # merged cells repeat across the grid; read each once
            seen = set()
            for row in block.rows:
                for cell in row.cells:
                    if cell._tc in seen:
                        continue
                    seen.add(cell._tc)
                    yield from _iter_paragraph_text(cell)
        else:
            yield block.text
