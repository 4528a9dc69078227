"""
Analysis services package.
"""
from legalease.services.analysis_orchestrator import (
    AnalysisCancelledError,
    AnalysisOrchestrator,
    InvalidDocumentError,
    analyze_document,
)
from legalease.services.llm_client import (
    EmptyResponseError,
    LLMClient,
    MissingCredentialsError,
    ModelError,
    TransportFailureError,
)

__all__ = [
    'AnalysisCancelledError',
    'AnalysisOrchestrator',
    'InvalidDocumentError',
    'analyze_document',
    'EmptyResponseError',
    'LLMClient',
    'MissingCredentialsError',
    'ModelError',
    'TransportFailureError',
]
