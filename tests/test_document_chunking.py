"""
Unit tests for structure-aware document chunking.
"""
import pytest

from conftest import build_contract
from legalease.utils.document_chunking import (
    CONTINUED_FROM_MARKER,
    SECTION_CONTINUES_MARKER,
    chunk_document,
    is_section_start,
    should_chunk,
    split_paragraphs,
    strip_continuity_markers,
)


def _reconstruct(chunks):
    paragraphs = []
    for chunk in chunks:
        paragraphs.extend(strip_continuity_markers(chunk.content).split('\n\n'))
    return paragraphs


def _plain_document(paragraphs: int = 30, sentences: int = 6) -> str:
    """Document with no section markers, so every split happens mid-section."""
    return '\n\n'.join(
        ' '.join(f"Paragraph {p} sentence {s} describes ordinary obligations of the parties." for s in range(sentences))
        for p in range(paragraphs)
    )


class TestSplitParagraphs:
    """Test suite for paragraph splitting and noise filtering."""

    def test_splits_on_blank_lines(self):
        """Test that paragraphs are split on blank lines."""
        text = "First paragraph of text.\n\nSecond paragraph of text.\n  \nThird paragraph here."
        assert split_paragraphs(text) == [
            "First paragraph of text.",
            "Second paragraph of text.",
            "Third paragraph here.",
        ]

    def test_drops_short_noise_paragraphs(self):
        """Test that paragraphs under ten characters are dropped."""
        text = "Page 1\n\nA real paragraph with content.\n\n- 2 -\n\n0123456789"
        # Exactly ten characters is kept
        assert split_paragraphs(text) == ["A real paragraph with content.", "0123456789"]


class TestSectionMarkers:
    """Test suite for legal section detection."""

    @pytest.mark.parametrize('paragraph', [
        'ARTICLE IV\nPayment terms follow.',
        'Article 12 Governing Law',
        'SECTION 3.2 Confidentiality',
        'CLAUSE 7 Termination',
        '1. Definitions',
        'DEFINITIONS AND INTERPRETATION',
        'WHEREAS the parties wish to cooperate',
        'NOW, THEREFORE, the parties agree',
        'IN WITNESS WHEREOF the parties have signed',
    ])
    def test_recognizes_section_starts(self, paragraph):
        """Test that section headings are recognized."""
        assert is_section_start(paragraph)

    def test_ordinary_paragraph_is_not_section_start(self):
        """Test that ordinary prose is not a section start."""
        assert not is_section_start('The tenant shall keep the premises clean and tidy.')


class TestChunkDocument:
    """Test suite for chunk_document."""

    def test_short_text_is_single_chunk_with_default_metadata(self):
        """Test that text within the limit becomes one chunk with default flags."""
        text = "A short payment agreement dated 01/02/2024 for $500."
        chunks = chunk_document(text, max_chunk_size=1000)

        assert len(chunks) == 1
        assert chunks[0].index == 0
        assert chunks[0].content == text
        assert chunks[0].size == len(text)
        assert not chunks[0].is_critical
        assert not chunks[0].has_financial_terms
        assert not chunks[0].has_dates

    def test_long_contract_chunks_start_at_article_boundaries(self, long_contract):
        """Test that each chunk starts at or carries forward an ARTICLE boundary."""
        assert len(long_contract) >= 19_000
        chunks = chunk_document(long_contract, max_chunk_size=5000)

        assert len(chunks) >= 3
        assert [c.index for c in chunks] == list(range(len(chunks)))
        assert chunks[0].content.startswith('ARTICLE I\n')
        for chunk in chunks[1:]:
            assert chunk.content.startswith(CONTINUED_FROM_MARKER)
            assert '\n\nARTICLE ' in chunk.content
            assert not chunk.content.endswith(SECTION_CONTINUES_MARKER)

    def test_size_invariant(self, long_contract):
        """Test that chunks stay within the maximum size."""
        for chunk in chunk_document(long_contract, max_chunk_size=5000):
            assert chunk.size == len(chunk.content)
            assert chunk.size <= 5000

    def test_reconstruction_preserves_paragraph_order(self, long_contract):
        """Test that stripping markers reproduces the paragraphs in order."""
        chunks = chunk_document(long_contract, max_chunk_size=5000)
        assert _reconstruct(chunks) == split_paragraphs(long_contract)

    def test_mid_section_split_appends_continuation_marker(self):
        """Test that a mid-section split ends with the continuation marker."""
        text = _plain_document()
        chunks = chunk_document(text, max_chunk_size=2000)

        assert len(chunks) > 2
        for chunk in chunks[:-1]:
            assert chunk.content.endswith('\n\n' + SECTION_CONTINUES_MARKER)
            assert chunk.size <= 2000
        assert not chunks[-1].content.endswith(SECTION_CONTINUES_MARKER)
        assert _reconstruct(chunks) == split_paragraphs(text)

    def test_total_coverage_excludes_only_noise(self):
        """Test that every non-noise paragraph appears exactly once."""
        kept = [f"Clause {n}: the parties agree to cooperate in good faith." for n in range(60)]
        text = '\n\n'.join(p for para in kept for p in (para, 'Page'))
        chunks = chunk_document(text, max_chunk_size=500)

        paragraphs = _reconstruct(chunks)
        assert paragraphs == kept
        assert 'Page' not in paragraphs

    def test_oversized_paragraph_is_never_split(self):
        """Test that a paragraph over the limit forms its own chunk."""
        huge = 'x' * 3000
        text = f"Opening paragraph of the agreement.\n\n{huge}\n\nClosing paragraph of the agreement."
        chunks = chunk_document(text, max_chunk_size=1000)

        oversized = [c for c in chunks if c.size > 1000]
        assert len(oversized) == 1
        assert huge in oversized[0].content
        assert _reconstruct(chunks) == split_paragraphs(text)

    def test_text_without_blank_lines_becomes_one_oversized_chunk(self):
        """Test that long text without paragraph breaks stays in one chunk."""
        text = 'word ' * 500
        chunks = chunk_document(text.strip(), max_chunk_size=1000)

        assert len(chunks) == 1
        assert chunks[0].size > 1000

    def test_only_noise_paragraphs_yields_no_chunks(self):
        """Test that text made only of noise paragraphs yields no chunks."""
        text = '\n\n'.join(['tiny'] * 500)
        assert chunk_document(text, max_chunk_size=100) == []

    def test_chunk_flags(self):
        """Test that critical, financial and date flags are detected."""
        payment = "The Customer shall make payment of $12,500 to the Provider on January 15, 2025."
        filler = "The parties shall cooperate in the ordinary course of business at all times."
        text = '\n\n'.join([payment] + [filler] * 20)
        chunks = chunk_document(text, max_chunk_size=400)

        first = chunks[0]
        assert first.is_critical
        assert first.has_financial_terms
        assert first.has_dates

        last = chunks[-1]
        assert not last.is_critical
        assert not last.has_financial_terms
        assert not last.has_dates

    def test_critical_detection_is_case_insensitive(self):
        """Test that critical keywords match regardless of case."""
        body = "Either party may seek INDEMNIFICATION for losses arising hereunder."
        text = '\n\n'.join([body] * 40)
        assert all(c.is_critical for c in chunk_document(text, max_chunk_size=500))


class TestShouldChunk:
    """Test suite for the chunking decision."""

    def test_short_document_is_not_chunked(self):
        """Test that a short document is routed to single pass."""
        decision = should_chunk("This is a short non-legal paragraph about gardening techniques.", 8000)

        assert not decision.should_chunk
        assert decision.estimated_pages == 1
        assert decision.recommended_strategy == 'single-pass'

    def test_long_document_is_chunked(self, long_contract):
        """Test that a document over the threshold is chunked."""
        decision = should_chunk(long_contract, 8000)

        assert decision.should_chunk
        assert decision.has_complex_structure
        assert decision.document_size == len(long_contract)
        assert decision.estimated_pages == -(-len(long_contract) // 3000)

    def test_structured_document_under_threshold_is_chunked_when_over_three_pages(self):
        """Test that a structured document over three pages is chunked below the threshold."""
        text = build_contract(articles=10)
        assert 9000 < len(text) <= 12_000

        decision = should_chunk(text, threshold=20_000)
        assert decision.should_chunk
        assert decision.recommended_strategy == 'chunking'

    def test_unstructured_document_under_threshold_is_not_chunked(self):
        """Test that an unstructured document below the threshold is not chunked."""
        text = _plain_document(paragraphs=25)
        assert len(text) > 9000

        decision = should_chunk(text, threshold=20_000)
        assert not decision.has_complex_structure
        assert not decision.should_chunk

    def test_to_dict_uses_camel_case(self):
        """Test that the chunking decision serialises with camelCase keys."""
        data = should_chunk('ARTICLE I text', 8000).to_dict()
        assert set(data) == {
            'shouldChunk', 'estimatedPages', 'documentSize', 'hasComplexStructure', 'recommendedStrategy',
        }
