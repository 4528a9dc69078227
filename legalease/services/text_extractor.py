"""
Text extraction service for uploaded legal documents.
Supports PDF, DOCX and plain text formats.
"""
import re
import logging
from pathlib import Path
from typing import List, Union

import docx
from pdfminer.high_level import extract_text as pdf_extract_text
from pdfminer.pdfparser import PDFSyntaxError

logger = logging.getLogger(__name__)

# Maximum characters to extract to avoid runaway prompts
MAX_TEXT_LENGTH = 2_000_000

SUPPORTED_EXTENSIONS = ('.pdf', '.docx', '.txt')

_HEADING_STYLE = re.compile(r'heading\s*(\d+)', re.IGNORECASE)


def _normalize_whitespace(text: str) -> str:
    """
    Normalize whitespace and remove control characters.

    Paragraph breaks (blank lines) are kept so the chunker can find them.

    Args:
        text: Raw extracted text.

    Returns:
        Cleaned text with normalized whitespace.
    """
    # Remove control characters except newline, tab, carriage return
    text = re.sub(r'[\x00-\x08\x0B-\x0C\x0E-\x1F\x7F-\x9F]', '', text)

    text = text.replace('\r\n', '\n').replace('\r', '\n')
    text = re.sub(r'[ \t]+', ' ', text)

    lines = [line.strip() for line in text.split('\n')]
    text = '\n'.join(lines)

    # At most one blank line between paragraphs
    text = re.sub(r'\n{3,}', '\n\n', text)

    return text.strip()


def _heading_number(style_name: str, counters: List[int]) -> str:
    """
    Outline number for a heading paragraph, e.g. "2." or "2.1".

    Updates ``counters`` in place; returns '' for non-heading styles.
    """
    match = _HEADING_STYLE.search(style_name)
    if not match:
        return ''

    level = min(int(match.group(1)), len(counters))
    counters[level - 1] += 1
    for j in range(level, len(counters)):
        counters[j] = 0

    parts = [str(counters[j]) for j in range(level) if counters[j] > 0]
    if level == 1:
        return f"{parts[0]}."
    return '.'.join(parts)


def _extract_docx_text(path: Path) -> str:
    """
    Extract text from a DOCX file, numbering headings and including table cells.

    Raises:
        RuntimeError: On extraction failure.
    """
    try:
        document = docx.Document(str(path))
        paragraphs = []
        heading_counters = [0] * 9

        for para in document.paragraphs:
            if not para.text.strip():
                continue
            style_name = para.style.name if para.style is not None else ''
            number = _heading_number(style_name, heading_counters)
            paragraphs.append(f"{number} {para.text}" if number else para.text)

        table_cells = 0
        for table in document.tables:
            for row in table.rows:
                for cell in row.cells:
                    if cell.text.strip():
                        paragraphs.append(cell.text)
                        table_cells += 1

        text = '\n\n'.join(paragraphs)
        if not text.strip():
            raise RuntimeError("Document appears to be empty")

        logger.info(f"Extracted {len(text)} characters from DOCX file ({table_cells} table cells)")
        return text

    except RuntimeError:
        raise
    except Exception as e:
        logger.error(f"Failed to extract text from DOCX: {type(e).__name__} - {str(e)}")
        raise RuntimeError(
            "Failed to parse Word document. Please ensure the document is not corrupted."
        )


def _extract_pdf_text(path: Path) -> str:
    """
    Extract text from a PDF file.

    Raises:
        RuntimeError: On extraction failure.
    """
    try:
        text = pdf_extract_text(str(path))
    except PDFSyntaxError:
        logger.error("PDF file has syntax errors")
        raise RuntimeError("Failed to parse PDF file. The file may be corrupted.")
    except Exception as e:
        logger.error(f"Failed to extract text from PDF: {type(e).__name__}")
        raise RuntimeError(
            "Failed to parse PDF file. Please ensure the PDF contains readable text."
        )

    if not text or not text.strip():
        raise RuntimeError("PDF appears to be empty or contains only images")

    logger.info(f"Extracted {len(text)} characters from PDF file")
    return text


def _extract_plain_text(path: Path) -> str:
    try:
        text = path.read_text(encoding='utf-8', errors='replace')
    except OSError as e:
        logger.error(f"Failed to read text file: {type(e).__name__}")
        raise RuntimeError("Failed to read text file")

    if not text.strip():
        raise RuntimeError("File appears to be empty or could not extract text content")
    return text


def extract_text(path: Union[str, Path]) -> str:
    """
    Extract text from a legal document (PDF, DOCX or TXT).

    Args:
        path: Path to the document file.

    Returns:
        Normalized text content, clamped to ``MAX_TEXT_LENGTH`` characters.

    Raises:
        RuntimeError: If the file is missing, unsupported or unreadable.
    """
    path = Path(path)
    if not path.exists():
        raise RuntimeError("Document file not found")

    suffix = path.suffix.lower()

    if suffix == '.docx':
        raw_text = _extract_docx_text(path)
    elif suffix == '.pdf':
        raw_text = _extract_pdf_text(path)
    elif suffix == '.txt':
        raw_text = _extract_plain_text(path)
    else:
        logger.error(f"Unsupported file format: {suffix}")
        raise RuntimeError(
            f"Unsupported file format: {suffix}. Only PDF, DOCX and TXT files are supported."
        )

    normalized_text = _normalize_whitespace(raw_text)

    if len(normalized_text) > MAX_TEXT_LENGTH:
        logger.warning(f"Text length {len(normalized_text)} exceeds maximum {MAX_TEXT_LENGTH}, truncating")
        normalized_text = normalized_text[:MAX_TEXT_LENGTH]

    logger.info(f"Text extraction complete: {len(normalized_text)} characters after normalization")
    return normalized_text
