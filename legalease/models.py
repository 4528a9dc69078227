"""
Records exchanged inside the document analysis pipeline.

Every record serialises to the camelCase JSON shape consumed by the HTTP layer
and the history collaborator via ``to_dict()``.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

RISK_LEVELS = ('low', 'medium', 'high')
SEVERITIES = ('critical', 'high', 'medium', 'low', 'notice')


@dataclass
class DocumentTypeVerdict:
    """Outcome of the classification gate."""
    is_legal: bool
    document_type: str
    confidence: float
    source: str = 'model'  # model | heuristic | default

    def to_dict(self) -> Dict[str, Any]:
        return {
            'isLegal': self.is_legal,
            'documentType': self.document_type,
            'confidence': self.confidence,
            'source': self.source,
        }


@dataclass(frozen=True)
class Chunk:
    index: int
    content: str
    size: int
    is_critical: bool = False
    has_financial_terms: bool = False
    has_dates: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            'index': self.index,
            'content': self.content,
            'size': self.size,
            'isCritical': self.is_critical,
            'hasFinancialTerms': self.has_financial_terms,
            'hasDates': self.has_dates,
        }


@dataclass(frozen=True)
class ChunkAnalysis:
    chunk_index: int
    size: int
    is_critical: bool
    analysis: str
    has_financial_terms: bool
    has_dates: bool
    failed: bool = False

    @classmethod
    def for_chunk(cls, chunk: Chunk, analysis: str, failed: bool = False) -> 'ChunkAnalysis':
        return cls(
            chunk_index=chunk.index,
            size=chunk.size,
            is_critical=chunk.is_critical,
            analysis=analysis,
            has_financial_terms=chunk.has_financial_terms,
            has_dates=chunk.has_dates,
            failed=failed,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'chunkIndex': self.chunk_index,
            'size': self.size,
            'isCritical': self.is_critical,
            'analysis': self.analysis,
            'hasFinancialTerms': self.has_financial_terms,
            'hasDates': self.has_dates,
        }


@dataclass
class Clause:
    title: str
    original_text: str = ''
    explanation: str = ''
    risk_level: str = 'medium'
    risk_assessment: str = ''
    legal_implications: str = ''
    negotiation_points: str = ''
    industry_standard: str = ''
    key_terms: List[str] = field(default_factory=list)
    importance: str = 'medium'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'title': self.title,
            'originalText': self.original_text,
            'explanation': self.explanation,
            'riskLevel': self.risk_level,
            'riskAssessment': self.risk_assessment,
            'legalImplications': self.legal_implications,
            'negotiationPoints': self.negotiation_points,
            'industryStandard': self.industry_standard,
            'keyTerms': list(self.key_terms),
            'importance': self.importance,
        }


@dataclass
class RedFlag:
    issue: str
    severity: str = 'medium'
    explanation: str = ''
    potential_consequences: str = ''
    recommendations: str = ''
    legal_citations: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'issue': self.issue,
            'severity': self.severity,
            'explanation': self.explanation,
            'potentialConsequences': self.potential_consequences,
            'recommendations': self.recommendations,
            'legalCitations': self.legal_citations,
        }


@dataclass
class KeyDate:
    date: str
    description: str = ''
    importance: str = 'medium'
    action_required: str = ''

    def to_dict(self) -> Dict[str, Any]:
        return {
            'date': self.date,
            'description': self.description,
            'importance': self.importance,
            'actionRequired': self.action_required,
        }


@dataclass
class Favorability:
    for_party1: str = 'medium'
    for_party2: str = 'medium'
    explanation: str = 'Analysis not available'

    def to_dict(self) -> Dict[str, Any]:
        return {
            'forParty1': self.for_party1,
            'forParty2': self.for_party2,
            'explanation': self.explanation,
        }


@dataclass
class ChunkingReport:
    """How a large document was split, analyzed and synthesized."""
    overall_analysis: str
    chunk_analyses: List[ChunkAnalysis]
    total_chunks: int
    document_size: int
    processing_method: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            'overallAnalysis': self.overall_analysis,
            'chunkAnalyses': [a.to_dict() for a in self.chunk_analyses],
            'totalChunks': self.total_chunks,
            'documentSize': self.document_size,
            'processingMethod': self.processing_method,
        }


@dataclass
class AnalysisResult:
    summary: str
    clauses: List[Clause] = field(default_factory=list)
    red_flags: List[RedFlag] = field(default_factory=list)
    key_dates: List[KeyDate] = field(default_factory=list)
    overall_risk_level: str = 'medium'
    recommendations: List[str] = field(default_factory=list)
    missing_clauses: List[str] = field(default_factory=list)
    favorability: Favorability = field(default_factory=Favorability)
    document_type: Optional[str] = None
    note: Optional[str] = None
    chunking: Optional[ChunkingReport] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'summary': self.summary,
            'clauses': [c.to_dict() for c in self.clauses],
            'redFlags': [f.to_dict() for f in self.red_flags],
            'keyDates': [d.to_dict() for d in self.key_dates],
            'overallRiskLevel': self.overall_risk_level,
            'recommendations': list(self.recommendations),
            'missingClauses': list(self.missing_clauses),
            'favorability': self.favorability.to_dict(),
        }
        # Optional members are only emitted when present
        if self.document_type is not None:
            data['documentType'] = self.document_type
        if self.note is not None:
            data['note'] = self.note
        if self.chunking is not None:
            data['chunking'] = self.chunking.to_dict()
        return data
