"""
Deterministic analysis results that need no model call.
"""
import re
import logging
from typing import Optional

from legalease.models import AnalysisResult, Clause, DocumentTypeVerdict, Favorability, RedFlag

logger = logging.getLogger(__name__)

PAYMENT_PATTERN = re.compile(r'payment|fee|cost|price|amount', re.IGNORECASE)
TERMINATION_PATTERN = re.compile(r'terminate|end|cancel|expire', re.IGNORECASE)
LIABILITY_PATTERN = re.compile(r'liable|liability|responsible|damages', re.IGNORECASE)

DEGRADED_NOTE = (
    "This is a basic analysis. For comprehensive legal review, please consult with a qualified attorney."
)


def build_not_legal_result(verdict: DocumentTypeVerdict) -> AnalysisResult:
    """
    Canned result for a document the classification gate rejected.

    Contains exactly one notice-severity red flag and no clauses.
    """
    document_type = verdict.document_type
    return AnalysisResult(
        summary=f"This appears to be {document_type} rather than a legal document with contractual clauses.",
        red_flags=[
            RedFlag(
                issue='Document Type Mismatch',
                severity='notice',
                explanation=(
                    f"This document appears to be {document_type}, not a legal contract or agreement "
                    f"requiring legal analysis."
                ),
                potential_consequences=(
                    "No legal analysis needed as this document does not contain contractual terms "
                    "or legal obligations."
                ),
                recommendations=(
                    "Upload a legal document such as a contract, lease agreement, terms of service, "
                    "or other legal agreement for proper legal analysis."
                ),
                legal_citations="Legal analysis tools are designed specifically for contractual and legal documents",
            )
        ],
        overall_risk_level='low',
        recommendations=["Upload a legal contract, agreement, or terms of service document for legal analysis"],
        favorability=Favorability(
            for_party1='not-applicable',
            for_party2='not-applicable',
            explanation=(
                "Document type does not require legal favorability analysis as it contains no contractual terms"
            ),
        ),
        document_type=document_type,
    )


def build_degraded_result(text: str, reason: Optional[str] = None) -> AnalysisResult:
    """
    Keyword-driven analysis used when the model is unavailable.

    Args:
        text: The document text.
        reason: Why the model could not be used, for logging only.

    Returns:
        A well-formed AnalysisResult. The same text always produces the same result.
    """
    logger.warning(f"Producing degraded analysis: {reason or 'model unavailable'}")

    word_count = len(text.split())
    has_payment_terms = bool(PAYMENT_PATTERN.search(text))
    has_termination = bool(TERMINATION_PATTERN.search(text))
    has_liability = bool(LIABILITY_PATTERN.search(text))

    red_flags = [
        RedFlag(
            issue='AI Analysis Unavailable',
            severity='medium',
            explanation="Automated analysis is temporarily unavailable. Manual review strongly recommended.",
            potential_consequences=(
                "Important risks or unfavorable terms may go unnoticed without proper analysis."
            ),
            recommendations="Have document reviewed by qualified legal counsel before signing.",
            legal_citations="General legal principle: All contracts should be reviewed before execution.",
        )
    ]
    if has_liability:
        red_flags.append(
            RedFlag(
                issue='Liability Provisions Detected',
                severity='medium',
                explanation=(
                    "The document contains liability-related language that should be carefully reviewed."
                ),
                potential_consequences=(
                    "Liability terms can affect financial responsibility in case of disputes."
                ),
                recommendations="Review liability clauses with legal counsel to understand risk allocation.",
                legal_citations="Standard contract law principles apply to liability provisions",
            )
        )

    recommendations = [
        "Have the document reviewed by a qualified legal professional",
        "Ensure all parties understand their obligations and rights",
        "Pay special attention to payment terms and conditions"
        if has_payment_terms else "Review all financial obligations carefully",
        "Understand termination procedures and notice requirements"
        if has_termination else "Clarify contract duration and renewal terms",
    ]

    return AnalysisResult(
        summary=(
            f"Document analysis completed. This {word_count}-word document contains various legal "
            f"provisions that require review."
        ),
        clauses=[
            Clause(
                title='General Terms and Conditions',
                original_text='Full document content requires review',
                explanation="Standard contractual terms detected. Manual review recommended for specific provisions.",
                risk_level='medium',
                risk_assessment="Unable to assess risk automatically. Manual review required.",
                legal_implications="Various legal rights and obligations may be present.",
                negotiation_points=(
                    "Have a legal professional review the complete document for specific terms and conditions."
                ),
                industry_standard="Standards vary by jurisdiction and document type.",
                key_terms=['legal', 'review', 'professional'],
                importance='high',
            )
        ],
        red_flags=red_flags,
        overall_risk_level='medium',
        recommendations=recommendations,
        missing_clauses=[
            "Dispute resolution mechanism",
            "Governing law clause",
            "Force majeure provisions",
        ],
        favorability=Favorability(
            explanation=(
                "Document appears to have balanced terms, but detailed review needed to assess true favorability"
            ),
        ),
        note=DEGRADED_NOTE,
    )
