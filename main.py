from flask import Flask, jsonify
import os
import logging
from dotenv import load_dotenv
from werkzeug.middleware.proxy_fix import ProxyFix

# Load environment variables BEFORE reading analyzer configuration
load_dotenv()

from legalease.config import AnalyzerConfig
from legalease.services.llm_client import LLMClient
from legalease.services.analysis_orchestrator import AnalysisOrchestrator
from legalease.routes.document_routes import document_bp

logging.basicConfig(
    level=os.getenv('LOG_LEVEL', 'INFO').upper(),
    format='%(asctime)s %(levelname)s %(name)s: %(message)s',
)
logger = logging.getLogger(__name__)

# Uploads larger than this are rejected by Flask with 413
MAX_UPLOAD_BYTES = 10 * 1024 * 1024


def create_app(orchestrator: AnalysisOrchestrator = None) -> Flask:
    """
    Build the Flask application.

    Args:
        orchestrator: Analysis orchestrator to serve; built from the environment when omitted.
    """
    app = Flask(__name__)
    app.secret_key = os.getenv('SECRET_KEY', 'dev-secret-key')

    # Running behind a reverse proxy in production
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)

    app.config['MAX_CONTENT_LENGTH'] = MAX_UPLOAD_BYTES

    if orchestrator is None:
        config = AnalyzerConfig.from_env()
        orchestrator = AnalysisOrchestrator(LLMClient.from_config(config), config)
    app.config['ANALYSIS_ORCHESTRATOR'] = orchestrator

    print(f"DEBUG: Model: {orchestrator.config.model}")
    print(f"DEBUG: LLM API key set: {bool(getattr(orchestrator.client, 'has_credentials', False))}")

    app.register_blueprint(document_bp)

    @app.errorhandler(413)
    def upload_too_large(error):
        return jsonify({'success': False, 'message': 'File too large. Maximum size is 10MB.'}), 413

    @app.route('/')
    def index():
        return jsonify({'success': True, 'message': 'LegalEaseAI document analysis service'})

    logger.info("Flask app created")
    return app


app = create_app()

if __name__ == '__main__':
    port = int(os.getenv('PORT', '5000'))
    app.run(host='0.0.0.0', port=port, debug=os.getenv('FLASK_DEBUG') == '1')
