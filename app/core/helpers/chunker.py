"""
Text chunking with word and sentence boundary snapping.

Pages are concatenated into one buffer and a window of ``chunk_size``
characters slides over it in steps of ``chunk_size - chunk_overlap``.
Window edges that fall inside a word are moved to a nearby space or
sentence end so that chunks neither start nor end mid-word.
"""
import logging
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence

from app.core.helpers.extracter import PageText

logger = logging.getLogger(__name__)

_WORD_CHAR = re.compile(r"\w")
_SENTENCE_END = ".?!"


@dataclass(frozen=True)
class TextChunk:
    """A contiguous slice of a document's text."""

    document_id: int
    index: int
    text: str
    start_offset: int
    end_offset: int
    page_from: Optional[int]
    page_to: Optional[int]

    @property
    def token_count(self) -> int:
        return len(self.text.split())


class TextChunker:
    """Split per-page text into overlapping, boundary-aware chunks."""

    DEFAULT_CHUNK_SIZE = 1000
    DEFAULT_CHUNK_OVERLAP = 150
    MAX_BACKWARD_SHIFT = 60
    MAX_FORWARD_SHIFT = 120

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_overlap: int = DEFAULT_CHUNK_OVERLAP
    ):
        """
        Initialize text chunker.

        Args:
            chunk_size: Target size of each chunk in characters
            chunk_overlap: Number of overlapping characters between chunks

        Raises:
            ValueError: If the window would not advance
        """
        self.check_params(chunk_size, chunk_overlap)
        self.chunk_size = chunk_size
        self.chunk_overlap = chunk_overlap
        logger.info(
            f"TextChunker initialized with chunk_size={chunk_size}, "
            f"chunk_overlap={chunk_overlap}"
        )

    @staticmethod
    def check_params(chunk_size: int, chunk_overlap: int) -> None:
        if chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0:
            raise ValueError(f"chunk_overlap must not be negative, got {chunk_overlap}")
        if chunk_size - chunk_overlap <= 0:
            raise ValueError(
                f"chunk_overlap ({chunk_overlap}) must be smaller than chunk_size ({chunk_size})"
            )

    @staticmethod
    def _is_word_char(ch: str) -> bool:
        return bool(_WORD_CHAR.match(ch))

    def _snap_backward(self, text: str, pos: int) -> int:
        for i in range(pos, max(0, pos - self.MAX_BACKWARD_SHIFT) - 1, -1):
            ch = text[i]
            if ch == " " or ch in _SENTENCE_END:
                return i + 1
        return pos

    def _snap_forward(self, text: str, pos: int) -> int:
        last = min(len(text) - 1, pos + self.MAX_FORWARD_SHIFT)
        # prefer a sentence end, otherwise any space
        for i in range(pos, last + 1):
            if text[i] in _SENTENCE_END:
                return i + 1
        for i in range(pos, last + 1):
            if text[i] == " ":
                return i + 1
        return pos

    def split(
        self,
        document_id: int,
        pages: Sequence[PageText],
        chunk_size: Optional[int] = None,
        chunk_overlap: Optional[int] = None,
    ) -> List[TextChunk]:
        """
        Split extracted pages into chunks.

        Args:
            document_id: Owning document
            pages: Pages in reading order
            chunk_size: Overrides the instance chunk size
            chunk_overlap: Overrides the instance overlap

        Returns:
            Chunks with contiguous indices starting at 0; empty when the
            pages contain no text
        """
        size = self.chunk_size if chunk_size is None else chunk_size
        overlap = self.chunk_overlap if chunk_overlap is None else chunk_overlap
        self.check_params(size, overlap)
        step = size - overlap

        page_starts: List[int] = []
        parts: List[str] = []
        offset = 0
        for page in pages:
            page_starts.append(offset)
            parts.append(page.text)
            offset += len(page.text)
        full = "".join(parts)
        length = len(full)

        chunks: List[TextChunk] = []
        target_start = 0
        while target_start < length:
            start = target_start
            if start > 0 and self._is_word_char(full[start]) and self._is_word_char(full[start - 1]):
                start = self._snap_backward(full, start)

            # the window must reach the next origin, otherwise a deep backward
            # snap would leave a hole between this chunk and the next one
            end = min(max(start + size, target_start + step), length)
            if end < length and self._is_word_char(full[end - 1]) and self._is_word_char(full[end]):
                end = self._snap_forward(full, end)

            page_from, page_to = self._page_range(pages, page_starts, length, start, end)
            chunks.append(
                TextChunk(
                    document_id=document_id,
                    index=len(chunks),
                    text=full[start:end],
                    start_offset=start,
                    end_offset=end,
                    page_from=page_from,
                    page_to=page_to,
                )
            )
            if end >= length:
                break
            target_start += step

        logger.debug(f"Split document {document_id} ({length} chars) into {len(chunks)} chunks")
        return chunks

    @staticmethod
    def _page_range(pages, page_starts, length, start, end):
        page_from = page_to = None
        for i, page_start in enumerate(page_starts):
            page_end = page_starts[i + 1] if i + 1 < len(page_starts) else length
            if page_from is None and start < page_end:
                page_from = pages[i].page_number
            if end <= page_end:
                page_to = pages[i].page_number
                break
        return page_from, page_to
