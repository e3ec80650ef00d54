from flask import jsonify
from werkzeug.exceptions import HTTPException
from marshmallow import ValidationError
import logging

from repair_inventory.errors import InventoryError

logger = logging.getLogger(__name__)


def error_response(error: InventoryError):
    """Body and status code for an inventory error raised by the service"""
    return error.to_dict(), error.status_code


def validation_error_response(error: ValidationError):
    """Body and status code for a request rejected by a marshmallow schema"""
    return {
        'error': 'Validation Error',
        'message': 'Request data validation failed',
        'status_code': 400,
        'details': error.messages
    }, 400


def internal_error_response():
    """Body and status code for an unexpected failure"""
    return {
        'error': 'Internal Server Error',
        'message': 'An unexpected error occurred',
        'status_code': 500
    }, 500


def register_error_handlers(app):
    """Register handlers for errors raised outside the API controllers"""
    
    @app.errorhandler(400)
    def bad_request(error):
        return jsonify({
            'error': 'Bad Request',
            'message': 'The request could not be understood by the server',
            'status_code': 400
        }), 400
    
    @app.errorhandler(404)
    def not_found(error):
        return jsonify({
            'error': 'Not Found',
            'message': 'The requested resource was not found',
            'status_code': 404
        }), 404
    
    @app.errorhandler(500)
    def internal_error(error):
        logger.error(f"Internal server error: {error}")
        body, status_code = internal_error_response()
        return jsonify(body), status_code
    
    @app.errorhandler(HTTPException)
    def http_exception(error):
        return jsonify({
            'error': error.name,
            'message': error.description,
            'status_code': error.code
        }), error.code
