"""
Unit tests for document text extraction
"""
import io

import pytest
from docx import Document as DocxDocument
from pptx import Presentation

from app.core.helpers.extracter import DocumentExtractor, normalize_text


def docx_bytes(*paragraphs):
    doc = DocxDocument()
    for paragraph in paragraphs:
        doc.add_paragraph(paragraph)
    buf = io.BytesIO()
    doc.save(buf)
    return buf.getvalue()


def pptx_bytes(*titles):
    prs = Presentation()
    for title in titles:
        slide = prs.slides.add_slide(prs.slide_layouts[5])  # title only
        slide.shapes.title.text = title
    buf = io.BytesIO()
    prs.save(buf)
    return buf.getvalue()


class TestNormalizeText:
    def test_collapses_whitespace(self):
        assert normalize_text("  HTTP   is\n\n a\tprotocol  ") == "HTTP is a protocol"

    def test_joins_hyphenated_line_breaks(self):
        assert normalize_text("trans-\nmission control") == "transmission control"

    def test_removes_space_before_punctuation(self):
        assert normalize_text("Reliable , ordered ; fast .") == "Reliable, ordered; fast."

    def test_removes_soft_hyphens(self):
        assert normalize_text("proto\u00adcol") == "protocol"


class TestDocumentExtractor:
    def test_plain_text_by_extension(self):
        """Test that .txt files become a single page"""
        pages = DocumentExtractor().extract_pages(b"TCP is  reliable.\n", "notes.txt")

        assert len(pages) == 1
        assert pages[0].page_number == 1
        assert pages[0].text == "TCP is reliable."

    def test_markdown_by_mime(self):
        pages = DocumentExtractor().extract_pages(b"# DNS\nresolves names", None, "text/markdown")
        assert pages[0].text == "# DNS resolves names"

    def test_docx_is_one_page(self):
        """Test that DOCX paragraphs are joined into one page"""
        data = docx_bytes("HTTP is a protocol.", "", "TCP is reliable.")
        pages = DocumentExtractor().extract_pages(data, "lecture.docx")

        assert len(pages) == 1
        assert pages[0].text == "HTTP is a protocol. TCP is reliable."

    def test_pptx_one_page_per_slide(self):
        """Test that each slide becomes its own page"""
        data = pptx_bytes("Kafka topics", "Redis streams")
        pages = DocumentExtractor().extract_pages(data, "slides.pptx")

        assert [p.page_number for p in pages] == [1, 2]
        assert pages[0].text == "Kafka topics"
        assert pages[1].text == "Redis streams"

    def test_mime_hint_wins_over_extension(self):
        data = docx_bytes("Routed by mime type.")
        mime = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
        pages = DocumentExtractor().extract_pages(data, "upload.bin", mime)
        assert pages[0].text == "Routed by mime type."

    def test_unknown_type_probes_docx(self):
        """Test that unknown types are tried as DOCX first"""
        pages = DocumentExtractor().extract_pages(docx_bytes("Probed content"), "blob", None)
        assert pages[0].text == "Probed content"

    def test_unknown_type_falls_back_to_text(self):
        pages = DocumentExtractor().extract_pages(b"just some words", "blob", "application/octet-stream")
        assert pages[0].text == "just some words"

    def test_broken_pdf_raises_value_error(self):
        with pytest.raises(ValueError):
            DocumentExtractor().extract_pages(b"not a pdf at all", "paper.pdf")

    def test_invalid_utf8_text_raises_value_error(self):
        """Test that undecodable text is reported instead of silently dropped"""
        with pytest.raises(ValueError):
            DocumentExtractor().extract_pages(b"caf\xe9 au lait", "notes.txt")
