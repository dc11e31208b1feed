"""
Tests for the DOCX decoder.
"""

import io

import pytest
from docx import Document

from docsum.docx_decoder import decode_docx
from docsum.utils import DecodeFailedError


def _docx_bytes(build):
    document = Document()
    build(document)
    buf = io.BytesIO()
    document.save(buf)
    return buf.getvalue()


class TestDecodeDocx:
    def test_paragraphs_verbatim(self):
        data = _docx_bytes(lambda d: (d.add_paragraph("Hello"), d.add_paragraph("World")))
        text = decode_docx(data)
        assert "Hello\n\nWorld\n\n" in text
        # not trimmed, unlike PDF and OCR output
        assert text.endswith("\n\n")

    def test_table_cells_in_document_order(self):
        def build(d):
            d.add_paragraph("Before")
            table = d.add_table(rows=1, cols=2)
            table.cell(0, 0).text = "A"
            table.cell(0, 1).text = "B"
            d.add_paragraph("After")

        text = decode_docx(_docx_bytes(build))
        assert "Before\n\nA\n\nB\n\nAfter\n\n" in text

    def test_merged_cells_read_once(self):
        def build(d):
            table = d.add_table(rows=1, cols=2)
            merged = table.cell(0, 0).merge(table.cell(0, 1))
            merged.text = "Merged"

        text = decode_docx(_docx_bytes(build))
        assert text.count("Merged") == 1

    def test_empty_body_is_not_an_error(self):
        assert decode_docx(_docx_bytes(lambda d: None)) == ""

    def test_blank_paragraph_kept_untrimmed(self):
        assert decode_docx(_docx_bytes(lambda d: d.add_paragraph(""))) == "\n\n"

    def test_exact_output(self):
        data = _docx_bytes(lambda d: (d.add_paragraph("Hello"), d.add_paragraph("World")))
        assert decode_docx(data) == "Hello\n\nWorld\n\n"

    def test_corrupt_docx(self):
        with pytest.raises(DecodeFailedError) as exc_info:
            decode_docx(b"PK\x03\x04 not really a zip")
        assert str(exc_info.value).startswith("Could not read DOCX:")
