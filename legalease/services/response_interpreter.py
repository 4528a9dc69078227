"""
Turns raw model text into structured records.

Decoding is two-stage: ``decode_json_object`` attempts a strict JSON decode
and returns None when the text is not a JSON object; the typed fallback
decoders then approximate the missing structure with keyword heuristics.
Nothing in this module raises on bad model output.
"""
import re
import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from legalease.models import (
    RISK_LEVELS,
    SEVERITIES,
    AnalysisResult,
    Clause,
    DocumentTypeVerdict,
    Favorability,
    KeyDate,
    RedFlag,
)

logger = logging.getLogger(__name__)

LEGAL_KEYWORDS = (
    'agreement', 'contract', 'terms', 'conditions', 'party', 'obligation',
    'liability', 'payment', 'breach', 'termination',
)
NON_LEGAL_KEYWORDS = (
    'experiment', 'research', 'study', 'analysis', 'objective', 'methodology',
    'results', 'conclusion',
)

DEFAULT_VERDICT_TYPE = 'unknown document'
HEURISTIC_CONFIDENCE = 0.6
DEFAULT_CONFIDENCE = 0.5

SUMMARY_PREVIEW_CHARS = 300

UNSTRUCTURED_NOTE = (
    "The model response was not structured JSON; this analysis was reconstructed "
    "heuristically. Manual review recommended."
)

_CODE_FENCE = re.compile(r'^```[a-zA-Z]*\s*|\s*```$')

_HIGH_RISK_PATTERN = re.compile(r'\bhigh[- ]risk\b|\bcritical\b|\bsevere\b|\bunlimited liability\b', re.IGNORECASE)
_LOW_RISK_PATTERN = re.compile(r'\blow[- ]risk\b|\bstandard terms?\b|\bbalanced\b', re.IGNORECASE)
_MEDIUM_RISK_PATTERN = re.compile(r'\bmedium[- ]risk\b|\bmoderate\b', re.IGNORECASE)

_RISK_RANK = {level: rank for rank, level in enumerate(RISK_LEVELS)}


@dataclass
class ChunkReading:
    """Model output for one chunk: the text kept for synthesis plus any structure it carried."""
    text: str
    structured: Optional[AnalysisResult] = None


def _strip_code_fences(raw: str) -> str:
    return _CODE_FENCE.sub('', raw.strip()).strip()


def decode_json_object(raw: Optional[str]) -> Optional[Dict[str, Any]]:
    """
    Strictly decode a JSON object from model output.

    Markdown code fences are removed first. If the whole text is not JSON, the
    span between the first ``{`` and the last ``}`` is tried.

    Returns:
        The decoded dict, or None if no JSON object could be decoded.
    """
    if not raw or not raw.strip():
        return None

    text = _strip_code_fences(raw)
    candidates = [text]
    start, end = text.find('{'), text.rfind('}')
    if 0 <= start < end and (start, end) != (0, len(text) - 1):
        candidates.append(text[start:end + 1])

    for candidate in candidates:
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if isinstance(data, dict):
            return data
    return None


def normalize_risk_level(value: Any, default: str = 'medium') -> str:
    level = str(value or '').strip().lower()
    if level in RISK_LEVELS:
        return level
    if level == 'critical':
        return 'high'
    return default


def normalize_severity(value: Any, default: str = 'medium') -> str:
    severity = str(value or '').strip().lower()
    return severity if severity in SEVERITIES else default


def highest_risk(levels) -> str:
    """Highest of the given risk levels; medium when none are given."""
    ranked = [normalize_risk_level(level) for level in levels]
    if not ranked:
        return 'medium'
    return max(ranked, key=lambda level: _RISK_RANK[level])


def _text(value: Any, default: str = '') -> str:
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip()
    if isinstance(value, list):
        return '; '.join(str(v) for v in value)
    return str(value)


def _string_list(value: Any, split_commas: bool = False) -> List[str]:
    """Coerce a list-valued field; a bare string is one item unless ``split_commas`` is set."""
    if value is None:
        return []
    if isinstance(value, str):
        if split_commas:
            return [part.strip() for part in value.split(',') if part.strip()]
        return [value.strip()] if value.strip() else []
    if isinstance(value, list):
        return [_text(item) for item in value if _text(item)]
    return [_text(value)]


def _records(value: Any) -> List[Dict[str, Any]]:
    if not isinstance(value, list):
        return []
    return [item for item in value if isinstance(item, dict)]


def _coerce_clause(data: Dict[str, Any]) -> Clause:
    return Clause(
        title=_text(data.get('title') or data.get('clause'), 'Untitled clause'),
        original_text=_text(data.get('originalText')),
        explanation=_text(data.get('explanation')),
        risk_level=normalize_risk_level(data.get('riskLevel')),
        risk_assessment=_text(data.get('riskAssessment')),
        legal_implications=_text(data.get('legalImplications')),
        negotiation_points=_text(data.get('negotiationPoints') or data.get('recommendation')),
        industry_standard=_text(data.get('industryStandard')),
        key_terms=_string_list(data.get('keyTerms'), split_commas=True),
        importance=normalize_risk_level(data.get('importance')),
    )


def _coerce_red_flag(data: Dict[str, Any]) -> RedFlag:
    return RedFlag(
        issue=_text(data.get('issue'), 'Unspecified issue'),
        severity=normalize_severity(data.get('severity')),
        explanation=_text(data.get('explanation')),
        potential_consequences=_text(data.get('potentialConsequences')),
        recommendations=_text(data.get('recommendations')),
        legal_citations=_text(data.get('legalCitations')),
    )


def _coerce_key_date(data: Dict[str, Any]) -> KeyDate:
    return KeyDate(
        date=_text(data.get('date'), 'Unspecified'),
        description=_text(data.get('description')),
        importance=normalize_risk_level(data.get('importance')),
        action_required=_text(data.get('actionRequired')),
    )


def _coerce_favorability(value: Any) -> Favorability:
    if not isinstance(value, dict):
        return Favorability()
    return Favorability(
        for_party1=_text(value.get('forParty1'), 'medium') or 'medium',
        for_party2=_text(value.get('forParty2'), 'medium') or 'medium',
        explanation=_text(value.get('explanation'), 'Analysis not available') or 'Analysis not available',
    )


def analysis_from_dict(data: Dict[str, Any]) -> AnalysisResult:
    """Build an AnalysisResult from a decoded object, defaulting every missing field."""
    return AnalysisResult(
        summary=_text(data.get('summary'), 'Document analysis completed') or 'Document analysis completed',
        clauses=[_coerce_clause(c) for c in _records(data.get('clauses'))],
        red_flags=[_coerce_red_flag(f) for f in _records(data.get('redFlags'))],
        key_dates=[_coerce_key_date(d) for d in _records(data.get('keyDates'))],
        overall_risk_level=normalize_risk_level(data.get('overallRiskLevel')),
        recommendations=_string_list(data.get('recommendations')),
        missing_clauses=_string_list(data.get('missingClauses')),
        favorability=_coerce_favorability(data.get('favorability')),
    )


def _approximate_risk(raw: str) -> str:
    if _HIGH_RISK_PATTERN.search(raw):
        return 'high'
    if _LOW_RISK_PATTERN.search(raw) and not _MEDIUM_RISK_PATTERN.search(raw):
        return 'low'
    return 'medium'


def _matched_keywords(text: str, keywords) -> List[str]:
    lowered = text.lower()
    return [keyword for keyword in keywords if keyword in lowered]


def heuristic_analysis(raw: str) -> AnalysisResult:
    """
    Wrap unstructured model text as a well-formed AnalysisResult.

    The raw text becomes a single generic clause with medium risk; key terms
    and the overall risk level are approximated from keywords in the text.
    """
    text = raw.strip()
    summary = text[:SUMMARY_PREVIEW_CHARS] + ('...' if len(text) > SUMMARY_PREVIEW_CHARS else '')
    key_terms = _matched_keywords(text, LEGAL_KEYWORDS) or ['legal', 'document', 'analysis']

    return AnalysisResult(
        summary=summary or 'Document analysis completed',
        clauses=[
            Clause(
                title='AI Analysis',
                original_text='Full document content',
                explanation=text,
                risk_level='medium',
                risk_assessment='Automated analysis provided. Manual review recommended.',
                legal_implications='Various legal implications present in document.',
                negotiation_points='Review with legal counsel for negotiation strategies.',
                industry_standard='Standards vary by jurisdiction and industry.',
                key_terms=key_terms,
                importance='medium',
            )
        ],
        overall_risk_level=_approximate_risk(text),
        recommendations=['Review with qualified legal counsel'],
        favorability=Favorability(explanation='Detailed analysis not available'),
        note=UNSTRUCTURED_NOTE,
    )


def interpret_analysis(raw: str) -> AnalysisResult:
    """
    Interpret a full-analysis response.

    Returns:
        The decoded result with defaults filled in, or the heuristic result
        when the text is not a JSON object.
    """
    data = decode_json_object(raw)
    if data is not None:
        logger.debug("Analysis response decoded as JSON")
        return analysis_from_dict(data)

    logger.warning("Analysis response was not valid JSON, applying heuristic fallback")
    return heuristic_analysis(raw or '')


def interpret_chunk(raw: str) -> ChunkReading:
    """Interpret a chunk-analysis response, keeping the text and any structure."""
    text = (raw or '').strip()
    data = decode_json_object(text)
    if data is None:
        logger.debug("Chunk response is unstructured text")
        return ChunkReading(text=text)
    return ChunkReading(text=text, structured=analysis_from_dict(data))


def default_verdict() -> DocumentTypeVerdict:
    return DocumentTypeVerdict(
        is_legal=True,
        document_type=DEFAULT_VERDICT_TYPE,
        confidence=DEFAULT_CONFIDENCE,
        source='default',
    )


def heuristic_verdict(document_text: str) -> DocumentTypeVerdict:
    """Classify by counting legal against non-legal keywords in the document."""
    legal_count = len(_matched_keywords(document_text, LEGAL_KEYWORDS))
    non_legal_count = len(_matched_keywords(document_text, NON_LEGAL_KEYWORDS))
    logger.debug(f"Keyword classification: legal={legal_count}, non_legal={non_legal_count}")

    return DocumentTypeVerdict(
        is_legal=legal_count > non_legal_count,
        document_type='academic/research document' if non_legal_count > legal_count else DEFAULT_VERDICT_TYPE,
        confidence=HEURISTIC_CONFIDENCE,
        source='heuristic',
    )


def _coerce_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('true', 'yes', '1')
    return bool(value)


def _coerce_confidence(value: Any) -> float:
    try:
        confidence = float(value)
    except (TypeError, ValueError):
        return DEFAULT_CONFIDENCE
    return min(1.0, max(0.0, confidence))


def interpret_classification(raw: Optional[str], document_text: str) -> DocumentTypeVerdict:
    """
    Interpret a classification response.

    Args:
        raw: Model output, or None if the model call failed.
        document_text: The document, used by the keyword fallback.

    Returns:
        The decoded verdict, a keyword-based verdict for non-JSON output, or
        the default legal verdict when there is no output at all.
    """
    if raw is None or not raw.strip():
        return default_verdict()

    data = decode_json_object(raw)
    if data is not None:
        return DocumentTypeVerdict(
            is_legal=_coerce_bool(data.get('isLegal', False)),
            document_type=_text(data.get('documentType'), DEFAULT_VERDICT_TYPE) or DEFAULT_VERDICT_TYPE,
            confidence=_coerce_confidence(data.get('confidence', DEFAULT_CONFIDENCE)),
            source='model',
        )

    logger.warning("Classification response was not valid JSON, using keyword heuristic")
    return heuristic_verdict(document_text)
