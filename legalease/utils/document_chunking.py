"""
Structure-aware chunking for large legal documents.

Splits documents on paragraph boundaries while keeping legal sections
together where possible, so each chunk can be analyzed on its own and the
pieces synthesized afterwards.
"""
import re
import math
import logging
from dataclasses import dataclass
from typing import List

from legalease.models import Chunk

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHUNK_SIZE = 5_000
DEFAULT_CHUNK_THRESHOLD = 8_000

# Paragraphs shorter than this are page numbers, stray headers and other noise
MIN_PARAGRAPH_LENGTH = 10

# Rough estimate used for page counts
CHARS_PER_PAGE = 3_000

SECTION_CONTINUES_MARKER = '[SECTION CONTINUES...]'
CONTINUED_FROM_MARKER = '[...CONTINUED FROM PREVIOUS SECTION]'

_SEAL_SUFFIX = '\n\n' + SECTION_CONTINUES_MARKER
_PARAGRAPH_SEPARATOR = '\n\n'
_MAX_CARRY_CHARS = 600

_PARAGRAPH_SPLIT = re.compile(r'\n\s*\n')
_SENTENCE_SPLIT = re.compile(r'(?<=[.!?])\s+')

# Matched against the first line of a paragraph
SECTION_MARKERS = [
    re.compile(r'^ARTICLE\s+[IVXLC\d]+', re.IGNORECASE),
    re.compile(r'^SECTION\s+[\d.]+', re.IGNORECASE),
    re.compile(r'^CLAUSE\s+[\d.]+', re.IGNORECASE),
    re.compile(r'^\d+\.\s*[A-Z]'),
    re.compile(r'^[A-Z][A-Z\s]{2,}:?\s*$'),
    re.compile(r'^WHEREAS', re.IGNORECASE),
    re.compile(r'^NOW,?\s+THEREFORE', re.IGNORECASE),
    re.compile(r'^IN WITNESS WHEREOF', re.IGNORECASE),
]

CRITICAL_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r'termination',
        r'liability',
        r'payment',
        r'breach',
        r'confidential',
        r'proprietary',
        r'warranty',
        r'indemnif',
        r'governing law',
        r'dispute resolution',
        r'force majeure',
    )
]

FINANCIAL_PATTERN = re.compile(
    r'[$€£]\s?\d[\d,]*(?:\.\d+)?'
    r'|\b\d[\d,]*(?:\.\d+)?\s?(?:USD|EUR|GBP|dollars|euros|pounds)\b',
    re.IGNORECASE,
)

DATE_PATTERN = re.compile(
    r'\b\d{1,2}/\d{1,2}/\d{2,4}\b'
    r'|\b\d{4}-\d{2}-\d{2}\b'
    r'|\b(?:Jan(?:uary)?|Feb(?:ruary)?|Mar(?:ch)?|Apr(?:il)?|May|June?|July?|Aug(?:ust)?'
    r'|Sep(?:t(?:ember)?)?|Oct(?:ober)?|Nov(?:ember)?|Dec(?:ember)?)\.?\s+\d{1,2},?\s+\d{4}\b',
    re.IGNORECASE,
)

COMPLEX_STRUCTURE_PATTERN = re.compile(r'ARTICLE|SECTION|CLAUSE|SCHEDULE|EXHIBIT', re.IGNORECASE)


@dataclass
class ChunkingDecision:
    should_chunk: bool
    estimated_pages: int
    document_size: int
    has_complex_structure: bool
    recommended_strategy: str

    def to_dict(self) -> dict:
        return {
            'shouldChunk': self.should_chunk,
            'estimatedPages': self.estimated_pages,
            'documentSize': self.document_size,
            'hasComplexStructure': self.has_complex_structure,
            'recommendedStrategy': self.recommended_strategy,
        }


def split_paragraphs(text: str) -> List[str]:
    """Split text on blank lines, dropping noise paragraphs."""
    paragraphs = (p.strip() for p in _PARAGRAPH_SPLIT.split(text))
    return [p for p in paragraphs if len(p) >= MIN_PARAGRAPH_LENGTH]


def is_section_start(paragraph: str) -> bool:
    """True if the paragraph opens a new legal section."""
    first_line = paragraph.split('\n', 1)[0].strip()
    return any(marker.match(first_line) for marker in SECTION_MARKERS)


def is_critical(text: str) -> bool:
    return any(pattern.search(text) for pattern in CRITICAL_PATTERNS)


def _make_chunk(index: int, content: str) -> Chunk:
    return Chunk(
        index=index,
        content=content,
        size=len(content),
        is_critical=is_critical(content),
        has_financial_terms=bool(FINANCIAL_PATTERN.search(content)),
        has_dates=bool(DATE_PATTERN.search(content)),
    )


def _carry_over_block(previous_content: str) -> str:
    """
    Build the context block carried into a chunk that opens a new section.

    The block is the continuation marker followed by the last two sentences of
    the previous chunk on a single line, so it never contains a blank line.
    """
    flattened = ' '.join(previous_content.split())
    sentences = [s for s in _SENTENCE_SPLIT.split(flattened) if s]
    tail = ' '.join(sentences[-2:])
    if len(tail) > _MAX_CARRY_CHARS:
        tail = tail[-_MAX_CARRY_CHARS:].lstrip()
    if not tail:
        return ''
    return f"{CONTINUED_FROM_MARKER}\n{tail}"


def strip_continuity_markers(content: str) -> str:
    """
    Remove injected continuity markers and carried context from chunk content.

    Args:
        content: Chunk content as produced by ``chunk_document``.

    Returns:
        Only the document paragraphs that belong to the chunk.
    """
    if content.startswith(CONTINUED_FROM_MARKER):
        _, _, content = content.partition(_PARAGRAPH_SEPARATOR)
    if content.endswith(_SEAL_SUFFIX):
        content = content[:-len(_SEAL_SUFFIX)]
    elif content.endswith(SECTION_CONTINUES_MARKER):
        content = content[:-len(SECTION_CONTINUES_MARKER)]
    return content.strip()


def chunk_document(text: str, max_chunk_size: int = DEFAULT_MAX_CHUNK_SIZE) -> List[Chunk]:
    """
    Split a document into ordered, structure-aware chunks.

    Paragraphs are accumulated greedily. When the next paragraph does not fit,
    the current chunk is sealed: a ``[SECTION CONTINUES...]`` marker is
    appended if the split falls inside a section, otherwise the new chunk opens
    with the tail of the previous one as context. Paragraphs are never split,
    so a single paragraph larger than ``max_chunk_size`` becomes its own
    oversized chunk.

    Args:
        text: Trimmed document text.
        max_chunk_size: Maximum characters per chunk.

    Returns:
        List of chunks in document order. Empty if no paragraph survives
        noise filtering.
    """
    logger.info(f"Starting chunking for {len(text)} character document (max {max_chunk_size})")

    if len(text) <= max_chunk_size:
        logger.info("Document fits in single chunk")
        return [Chunk(index=0, content=text, size=len(text))]

    paragraphs = split_paragraphs(text)
    logger.debug(f"Split document into {len(paragraphs)} paragraphs")

    # Room is always left for the continuation marker
    budget = max(1, max_chunk_size - len(_SEAL_SUFFIX))

    chunks: List[Chunk] = []
    parts: List[str] = []
    size = 0

    for paragraph in paragraphs:
        new_section = is_section_start(paragraph)
        projected = size + (len(_PARAGRAPH_SEPARATOR) if parts else 0) + len(paragraph)

        if parts and projected > budget:
            body = _PARAGRAPH_SEPARATOR.join(parts)
            if not new_section:
                body += _SEAL_SUFFIX
            chunks.append(_make_chunk(len(chunks), body))
            logger.debug(f"Created chunk {len(chunks) - 1} ({len(body)} chars)")

            parts, size = [], 0
            if new_section:
                carry = _carry_over_block(body)
                if carry and len(carry) + len(_PARAGRAPH_SEPARATOR) + len(paragraph) <= budget:
                    parts.append(carry)
                    size = len(carry)

        if parts:
            size += len(_PARAGRAPH_SEPARATOR)
        parts.append(paragraph)
        size += len(paragraph)

    if parts:
        body = _PARAGRAPH_SEPARATOR.join(parts)
        chunks.append(_make_chunk(len(chunks), body))
        logger.debug(f"Created final chunk {len(chunks) - 1} ({len(body)} chars)")

    logger.info(f"Document split into {len(chunks)} chunks")
    return chunks


def should_chunk(text: str, threshold: int = DEFAULT_CHUNK_THRESHOLD) -> ChunkingDecision:
    """
    Decide whether a document should go through chunked analysis.

    Documents longer than ``threshold`` are always chunked. Shorter documents
    are chunked when they span more than three estimated pages and contain
    structural keywords (articles, sections, schedules, exhibits).
    """
    document_size = len(text)
    is_large = document_size > threshold
    estimated_pages = math.ceil(document_size / CHARS_PER_PAGE)
    has_complex_structure = bool(COMPLEX_STRUCTURE_PATTERN.search(text))

    chunk = is_large or (estimated_pages > 3 and has_complex_structure)
    decision = ChunkingDecision(
        should_chunk=chunk,
        estimated_pages=estimated_pages,
        document_size=document_size,
        has_complex_structure=has_complex_structure,
        recommended_strategy='chunking' if chunk else 'single-pass',
    )

    logger.info(
        f"Document analysis: {document_size} chars, ~{estimated_pages} pages, "
        f"complex structure: {has_complex_structure}, chunk: {decision.should_chunk}"
    )
    return decision
