"""
Document text extraction service.
Supports PDF, DOCX, PPTX, and TXT/Markdown files, producing text per page.
"""
import io
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, List, Optional

from pypdf import PdfReader
from docx import Document as DocxDocument
from pptx import Presentation

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageText:
    """Plain text of one page (or slide) of a document, 1-based."""

    page_number: int
    text: str


def normalize_text(text: str) -> str:
    """Collapse whitespace and undo line-break hyphenation."""
    text = text.replace("\u00ad", "")                # soft hyphen
    text = re.sub(r"-\s*\n", "", text)                # hyphenated line breaks
    text = re.sub(r"\s+([.,;:?!%])", r"\1", text)     # space before punctuation
    text = re.sub(r"\s+", " ", text)
    return text.strip()


class DocumentExtractor:
    """Extract per-page text content from various document formats."""

    def extract_pages(
        self,
        file_bytes: bytes,
        filename: Optional[str] = None,
        mime_type: Optional[str] = None,
    ) -> List[PageText]:
        """
        Extract text from document bytes, one entry per page.

        The mime type hint wins over the filename extension. Unknown types
        are tried as DOCX, then PPTX, then plain text.

        Args:
            file_bytes: Raw file content as bytes
            filename: Optional original filename
            mime_type: Optional mime type hint

        Returns:
            Pages in reading order

        Raises:
            ValueError: If the content cannot be parsed
        """
        mime = (mime_type or "").lower()
        ext = Path(filename or "").suffix.lower().lstrip(".")

        if mime == "application/pdf" or ext == "pdf":
            return self._extract_pdf(file_bytes)
        if "wordprocessingml" in mime or ext == "docx":
            return self._extract_docx(file_bytes)
        if "presentationml" in mime or ext == "pptx":
            return self._extract_pptx(file_bytes)
        if mime.startswith("text/") or ext in ("txt", "md"):
            return self._extract_text(file_bytes)

        logger.info(f"Unknown type for '{filename}' ({mime_type}), probing formats")
        probes: List[Callable[[bytes], List[PageText]]] = [self._extract_docx, self._extract_pptx]
        for probe in probes:
            try:
                return probe(file_bytes)
            except ValueError:
                continue
        return self._extract_text(file_bytes)

    def _extract_pdf(self, file_bytes: bytes) -> List[PageText]:
        """Extract text from PDF, one entry per PDF page."""
        try:
            pdf = PdfReader(io.BytesIO(file_bytes))
            return [
                PageText(page_number=page_num, text=normalize_text(page.extract_text() or ""))
                for page_num, page in enumerate(pdf.pages, 1)
            ]
        except Exception as e:
            logger.error(f"PDF extraction error: {e}")
            raise ValueError(f"Failed to extract PDF: {str(e)}")

    def _extract_docx(self, file_bytes: bytes) -> List[PageText]:
        """Extract text from DOCX; Word has no stable pages, so one page."""
        try:
            doc = DocxDocument(io.BytesIO(file_bytes))
            paragraphs = [para.text for para in doc.paragraphs if para.text.strip()]
            return [PageText(page_number=1, text=normalize_text(" ".join(paragraphs)))]
        except Exception as e:
            logger.error(f"DOCX extraction error: {e}")
            raise ValueError(f"Failed to extract DOCX: {str(e)}")

    def _extract_pptx(self, file_bytes: bytes) -> List[PageText]:
        """Extract text from PPTX, one entry per slide."""
        try:
            prs = Presentation(io.BytesIO(file_bytes))
            pages = []
            for slide_num, slide in enumerate(prs.slides, 1):
                slide_text = [
                    shape.text for shape in slide.shapes
                    if hasattr(shape, "text") and shape.text.strip()
                ]
                pages.append(PageText(page_number=slide_num, text=normalize_text(" ".join(slide_text))))
            return pages
        except Exception as e:
            logger.error(f"PPTX extraction error: {e}")
            raise ValueError(f"Failed to extract PPTX: {str(e)}")

    def _extract_text(self, file_bytes: bytes) -> List[PageText]:
        """Extract text from a UTF-8 plain text file."""
        try:
            text = file_bytes.decode("utf-8")
        except UnicodeDecodeError as e:
            logger.error(f"Text extraction error: {e}")
            raise ValueError(f"Failed to decode text file: {str(e)}")
        return [PageText(page_number=1, text=normalize_text(text))]
