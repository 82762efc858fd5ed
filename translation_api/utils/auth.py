"""Shared authentication utilities.

Management routes (translations, locales, tags) require a Bearer JWT issued
by the identity service. The token must carry a ``user_id`` claim signed
with ``JWT_SECRET_KEY`` (HS256). Export routes are public.
"""

from functools import wraps
from flask import request, jsonify, current_app
import jwt


def decode_token(auth_header):
    """Extract user_id from an Authorization header value."""
    # Support both "Bearer <token>" and raw token formats
    token = auth_header.split(' ')[1] if ' ' in auth_header else auth_header
    payload = jwt.decode(token, current_app.config['JWT_SECRET_KEY'], algorithms=['HS256'])
    return payload['user_id']


def token_required(f):
    """
    Decorator to require valid JWT token.

    Extracts user_id from JWT token and passes it as the first argument
    to the decorated function.

    Usage:
        @translations_bp.route('', methods=['POST'])
        @token_required
        def create_translation(current_user_id):
            ...
    """
    @wraps(f)
    def decorated(*args, **kwargs):
        # Skip authentication in testing mode
        if current_app.config.get('TESTING'):
            current_user_id = 1  # Default test user
            return f(current_user_id, *args, **kwargs)

        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Token is missing'}), 401

        try:
            current_user_id = decode_token(auth_header)
        except jwt.ExpiredSignatureError:
            return jsonify({'error': 'Token has expired'}), 401
        except (jwt.InvalidTokenError, KeyError, IndexError):
            return jsonify({'error': 'Token is invalid'}), 401

        return f(current_user_id, *args, **kwargs)
    return decorated
