"""
HTTP endpoints for document analysis and the legal assistant.

Every response uses the ``{success, data, message}`` envelope. The
orchestrator is read from ``current_app.config['ANALYSIS_ORCHESTRATOR']``.
"""
import os
import logging
import tempfile
from pathlib import Path
from typing import Optional

from flask import Blueprint, current_app, jsonify, request
from werkzeug.utils import secure_filename

from legalease.services.analysis_orchestrator import AnalysisOrchestrator, InvalidDocumentError
from legalease.services.history_record import build_history_record
from legalease.services.text_extractor import SUPPORTED_EXTENSIONS, extract_text

document_bp = Blueprint('document', __name__, url_prefix='/api/document')
logger = logging.getLogger(__name__)

DEFAULT_DOCUMENT_TYPE = 'legal document'


def get_orchestrator() -> AnalysisOrchestrator:
    return current_app.config['ANALYSIS_ORCHESTRATOR']


def _error(message: str, status: int, error: Optional[str] = None):
    body = {'success': False, 'message': message}
    if error:
        body['error'] = error
    return jsonify(body), status


def _json_payload() -> dict:
    return request.get_json(silent=True) or {}


@document_bp.route('/analyze-text', methods=['POST'])
def analyze_text():
    """Analyze pasted document text."""
    data = _json_payload()
    text = (data.get('text') or '').strip()
    if not text:
        return _error('Text content is required', 400)

    try:
        result = get_orchestrator().analyze(text)
    except InvalidDocumentError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error(f"Text analysis failed: {type(e).__name__} - {str(e)}")
        return _error('Text analysis failed', 500, str(e))

    history = build_history_record(result, data.get('userEmail'), data.get('fileName') or 'Pasted text')
    return jsonify({
        'success': True,
        'data': result.to_dict(),
        'historyRecord': history,
        'message': 'Text analyzed successfully',
    })


@document_bp.route('/analyze-file', methods=['POST'])
def analyze_file():
    """Extract text from an uploaded PDF, DOCX or TXT file and analyze it."""
    upload = request.files.get('document')
    if upload is None:
        return _error('No file uploaded', 400)
    if not upload.filename:
        return _error('No file selected', 400)

    file_name = secure_filename(upload.filename) or 'document'
    suffix = Path(file_name).suffix.lower()
    if suffix not in SUPPORTED_EXTENSIONS:
        return _error('Only PDF, DOCX and TXT files are allowed', 400)

    fd, temp_name = tempfile.mkstemp(suffix=suffix)
    os.close(fd)
    temp_path = Path(temp_name)

    try:
        upload.save(str(temp_path))
        logger.info(f"Saved upload {file_name} to {temp_path} ({temp_path.stat().st_size} bytes)")

        try:
            text = extract_text(temp_path)
        except RuntimeError as e:
            logger.warning(f"Text extraction failed for {file_name}: {e}")
            return _error(str(e), 400)

        if not text.strip():
            return _error('File appears to be empty or could not extract text content', 400)

        try:
            result = get_orchestrator().analyze(text)
        except InvalidDocumentError as e:
            return _error(str(e), 400)

        history = build_history_record(result, request.form.get('userEmail'), upload.filename)
        return jsonify({
            'success': True,
            'data': result.to_dict(),
            'fileInfo': {
                'name': upload.filename,
                'size': temp_path.stat().st_size,
                'type': upload.mimetype,
                'textLength': len(text),
            },
            'historyRecord': history,
            'message': 'Document analyzed successfully',
        })

    except Exception as e:
        logger.error(f"Document analysis failed: {type(e).__name__} - {str(e)}")
        return _error('Document analysis failed', 500, str(e))
    finally:
        try:
            temp_path.unlink()
        except FileNotFoundError:
            pass


@document_bp.route('/chat', methods=['POST'])
def chat():
    data = _json_payload()
    message = (data.get('message') or '').strip()
    if not message:
        return _error('Message is required', 400)

    response = get_orchestrator().chat(message, data.get('context') or '')
    return jsonify({
        'success': True,
        'data': {'message': message, 'response': response},
        'message': 'Chat response generated successfully',
    })


@document_bp.route('/explain-clause', methods=['POST'])
def explain_clause():
    data = _json_payload()
    clause_text = (data.get('clauseText') or '').strip()
    if not clause_text:
        return _error('Clause text is required', 400)

    explanation = get_orchestrator().explain_clause(
        clause_text, data.get('documentType') or DEFAULT_DOCUMENT_TYPE
    )
    return jsonify({
        'success': True,
        'data': {'explanation': explanation},
        'message': 'Clause explained successfully',
    })


@document_bp.route('/ask', methods=['POST'])
def ask():
    """Answer a question about a specific document."""
    data = _json_payload()
    question = (data.get('question') or '').strip()
    text = (data.get('text') or '').strip()
    if not question or not text:
        return _error('Question and document text are required', 400)

    answer = get_orchestrator().answer_question(
        question, text, data.get('documentType') or DEFAULT_DOCUMENT_TYPE
    )
    return jsonify({
        'success': True,
        'data': {'question': question, 'answer': answer},
        'message': 'Question answered successfully',
    })


@document_bp.route('/summary', methods=['POST'])
def summary():
    data = _json_payload()
    text = (data.get('text') or '').strip()
    if not text:
        return _error('Text content is required', 400)

    summary_text = get_orchestrator().summarize(text, data.get('documentType') or DEFAULT_DOCUMENT_TYPE)
    return jsonify({
        'success': True,
        'data': {'summary': summary_text},
        'message': 'Summary generated successfully',
    })


@document_bp.route('/health', methods=['GET'])
def health():
    orchestrator = get_orchestrator()
    return jsonify({
        'success': True,
        'data': {
            'status': 'ok',
            'model': orchestrator.config.model,
            'modelConfigured': bool(getattr(orchestrator.client, 'has_credentials', False)),
        },
        'message': 'Document service is running',
    })
