"""
Unit tests for the text chunker
"""
import pytest

from app.core.helpers.chunker import TextChunker
from app.core.helpers.extracter import PageText

PARAGRAPH = (
    "The Transmission Control Protocol provides reliable, ordered delivery of a stream of bytes. "
    "Applications such as web browsers rely on it for HTTP traffic. Unlike UDP, it retransmits "
    "lost segments and controls congestion. DNS usually runs over UDP but falls back to TCP for "
    "large responses! Is that surprising? Many engineers think so, especially when debugging "
    "timeouts in production networks with aggressive firewalls and middleboxes."
)


def rebuild(chunks):
    """Concatenate chunk texts in index order, dropping the overlapping prefixes."""
    out = ""
    for chunk in chunks:
        assert chunk.start_offset <= len(out)
        out += chunk.text[len(out) - chunk.start_offset:] if chunk.end_offset > len(out) else ""
    return out


def two_pages():
    return [PageText(1, "HTTP is a protocol."), PageText(2, "TCP is reliable.")]


class TestChunkerScenario:
    def test_two_sentences_small_window(self):
        """Test that chunks overlap, cover both pages and never split a word"""
        chunks = TextChunker().split(1, two_pages(), chunk_size=15, chunk_overlap=5)
        full = "HTTP is a protocol.TCP is reliable."

        assert len(chunks) >= 2
        assert rebuild(chunks) == full
        for chunk in chunks:
            for word_start, word_end in ((10, 18), (26, 34)):  # "protocol", "reliable"
                assert not word_start < chunk.start_offset < word_end
                assert not word_start < chunk.end_offset < word_end
        assert any(a.end_offset > b.start_offset for a, b in zip(chunks, chunks[1:]))

    def test_offsets_and_pages(self):
        """Test exact windows and page ranges for the two-sentence input"""
        chunks = TextChunker().split(1, two_pages(), chunk_size=15, chunk_overlap=5)

        assert [(c.start_offset, c.end_offset) for c in chunks] == [(0, 19), (10, 25), (19, 34), (26, 35)]
        assert [c.text for c in chunks] == ["HTTP is a protocol.", "protocol.TCP is", "TCP is reliable", "reliable."]
        assert [(c.page_from, c.page_to) for c in chunks] == [(1, 1), (1, 2), (2, 2), (2, 2)]


class TestChunkerProperties:
    @pytest.mark.parametrize("size,overlap", [(60, 10), (100, 0), (40, 39), (250, 120), (1000, 150)])
    def test_round_trip(self, size, overlap):
        """Test that removing overlaps reconstructs the page text"""
        pages = [PageText(1, PARAGRAPH[:200]), PageText(2, PARAGRAPH[200:])]
        chunks = TextChunker().split(7, pages, chunk_size=size, chunk_overlap=overlap)

        assert rebuild(chunks) == PARAGRAPH
        assert [c.index for c in chunks] == list(range(len(chunks)))
        assert all(c.document_id == 7 for c in chunks)

    def test_page_numbers_come_from_pages(self):
        """Test that page ranges use the supplied page numbers"""
        pages = [PageText(3, "Alpha beta gamma. "), PageText(4, "Delta epsilon zeta.")]
        chunks = TextChunker().split(1, pages, chunk_size=500, chunk_overlap=10)

        assert len(chunks) == 1
        assert (chunks[0].page_from, chunks[0].page_to) == (3, 4)

    def test_empty_pages_yield_no_chunks(self):
        assert TextChunker().split(1, [PageText(1, ""), PageText(2, "")]) == []
        assert TextChunker().split(1, []) == []

    def test_long_unbroken_word(self):
        """Test that a word longer than the snap distance still terminates"""
        text = "x" * 700
        chunks = TextChunker().split(1, [PageText(1, text)], chunk_size=100, chunk_overlap=20)

        assert rebuild(chunks) == text
        assert chunks[-1].end_offset == len(text)

    def test_token_count(self):
        chunks = TextChunker().split(1, two_pages(), chunk_size=15, chunk_overlap=5)
        assert chunks[0].token_count == 4


class TestChunkerParameters:
    @pytest.mark.parametrize("size,overlap", [(10, 10), (10, 20), (0, 0), (-5, 0), (10, -1)])
    def test_rejects_non_advancing_windows(self, size, overlap):
        """Test that a step <= 0 is refused"""
        with pytest.raises(ValueError):
            TextChunker().split(1, two_pages(), chunk_size=size, chunk_overlap=overlap)

    def test_constructor_validates(self):
        with pytest.raises(ValueError):
            TextChunker(chunk_size=100, chunk_overlap=100)

    def test_resplit_is_identical(self):
        """Test that splitting twice gives the same chunks"""
        chunker = TextChunker(chunk_size=80, chunk_overlap=15)
        pages = [PageText(1, PARAGRAPH)]
        assert chunker.split(1, pages) == chunker.split(1, pages)
