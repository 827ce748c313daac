"""Application-wide error handlers."""
import logging

from flask import jsonify, render_template, request

from app import db
from app.exceptions import QuotationNotFound

logger = logging.getLogger(__name__)


def _wants_json():
    return request.path.endswith('/api') or request.is_json


def register_error_handlers(app):
    @app.errorhandler(404)
    def not_found(error):
        if _wants_json():
            return jsonify({'success': False, 'error': 'Not found'}), 404
        return render_template('errors/404.html'), 404

    @app.errorhandler(QuotationNotFound)
    def quotation_not_found(error):
        if _wants_json():
            return jsonify({'success': False, 'error': str(error)}), 404
        return render_template('errors/404.html', message=str(error)), 404

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        logger.error('Unhandled error on %s', request.path, exc_info=getattr(error, 'original_exception', None))
        if _wants_json():
            return jsonify({'success': False, 'error': 'Internal server error'}), 500
        return render_template('errors/500.html'), 500
