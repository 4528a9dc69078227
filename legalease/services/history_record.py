"""
Maps an analysis result onto the document history record shape.
"""
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from legalease.models import AnalysisResult


def build_history_record(
    result: AnalysisResult,
    user_email: Optional[str],
    file_name: Optional[str],
    analysis_date: Optional[datetime] = None,
) -> Dict[str, Any]:
    """
    Build the record the history store persists for one analysis.

    Args:
        result: The finished analysis.
        user_email: Owner of the record, if known.
        file_name: Uploaded file name, or a label for pasted text.
        analysis_date: Timestamp to record; defaults to now (UTC).

    Returns:
        Dict with userEmail, fileName, documentType, summary, riskLevel,
        redFlagsCount, clausesCount, analysisData (JSON string) and
        analysisDate (ISO-8601).
    """
    analysis_date = analysis_date or datetime.now(timezone.utc)
    return {
        'userEmail': user_email,
        'fileName': file_name or 'Pasted text',
        'documentType': result.document_type or 'Legal Document',
        'summary': result.summary,
        'riskLevel': result.overall_risk_level,
        'redFlagsCount': len(result.red_flags),
        'clausesCount': len(result.clauses),
        'analysisData': json.dumps(result.to_dict()),
        'analysisDate': analysis_date.isoformat(),
    }
