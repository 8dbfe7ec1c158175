# unithrift/errors.py
from flask import jsonify
from sqlalchemy.exc import SQLAlchemyError
from werkzeug.exceptions import HTTPException

from .models import db


class APIError(Exception):
    """Base for every error a handler turns into a JSON response.

    Extra keyword arguments are merged into the response body next to
    ``error``.
    """
    status_code = 500

    def __init__(self, error, status_code=None, **extra):
        super().__init__(error)
        self.error = error
        if status_code is not None:
            self.status_code = status_code
        self.extra = extra

    def to_dict(self):
        body = {'error': self.error}
        body.update(self.extra)
        return body


class ValidationError(APIError):
    status_code = 400


class AuthError(APIError):
    status_code = 401


class ForbiddenError(APIError):
    status_code = 403


class ConflictError(APIError):
    status_code = 409


class UnprocessableError(APIError):
    status_code = 422


class RateLimitError(APIError):
    status_code = 429


class ServerError(APIError):
    status_code = 500


def register_error_handlers(app):

    @app.errorhandler(APIError)
    def handle_api_error(e):
        if e.status_code >= 500:
            app.logger.error('%s: %s', e.error, e.extra)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({'error': e.description}), e.code

    @app.errorhandler(SQLAlchemyError)
    def handle_db_error(e):
        db.session.rollback()
        app.logger.exception('Database error')
        return jsonify({'error': 'Internal server error'}), 500
