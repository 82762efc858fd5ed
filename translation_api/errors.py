"""API errors and the Flask handlers that render them."""

import logging

from flask import jsonify, current_app
from werkzeug.exceptions import HTTPException

logger = logging.getLogger(__name__)

GENERIC_ERROR_MESSAGE = 'Internal server error'


class ApiError(Exception):
    """Base class for errors rendered as JSON responses."""

    status_code = 400

    def __init__(self, message=None, status_code=None):
        self.message = message or self.__class__.__doc__.strip()
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)

    def to_dict(self):
        return {'error': self.message}


class ValidationError(ApiError):
    """Validation error."""

    status_code = 422

    def __init__(self, message='Validation error', errors=None):
        super().__init__(message)
        self.errors = errors or {}

    def to_dict(self):
        data = super().to_dict()
        if self.errors:
            data['errors'] = self.errors
        return data


class NotFoundError(ApiError):
    """Resource not found."""

    status_code = 404


class ConflictError(ApiError):
    """Request refused by a business rule."""

    status_code = 400


class TransientStoreError(ApiError):
    """Data store or cache unavailable."""

    status_code = 503


class CdnMirrorError(Exception):
    """CDN push failed. Logged, never returned to the caller."""


def expose_details():
    return bool(current_app.config.get('EXPOSE_ERROR_DETAILS') or current_app.debug)


def server_error(message, error):
    """500 response for a failed write; the detail only leaks in debug."""
    logger.error(f"{message} {error}")
    detail = str(error) if expose_details() else GENERIC_ERROR_MESSAGE
    return jsonify({'message': message, 'error': detail}), 500


def register_error_handlers(app):
    """Register JSON error handlers on the app."""

    @app.errorhandler(ValidationError)
    def handle_validation_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(TransientStoreError)
    def handle_transient_error(error):
        logger.error(f"Store unavailable: {error.message}")
        body = {
            'error': error.message if expose_details() else 'Service temporarily unavailable',
            'retryable': True,
        }
        return jsonify(body), error.status_code

    @app.errorhandler(ApiError)
    def handle_api_error(error):
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_exception(error):
        return jsonify({'error': error.description}), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error):
        logger.exception(f"Unhandled error: {error}")
        message = str(error) if expose_details() else GENERIC_ERROR_MESSAGE
        return jsonify({'error': message}), 500
