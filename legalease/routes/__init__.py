"""
HTTP route blueprints.
"""
from legalease.routes.document_routes import document_bp

__all__ = ['document_bp']
