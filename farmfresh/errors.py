from flask import jsonify, request
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from farmfresh.extensions import db

JSON_PATH_PREFIXES = ("/api/", "/cart", "/product/", "/checkout", "/wishlist", "/me", "/farmers")


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class InvalidInputError(AppError):
    status_code = 400


class UnauthenticatedError(AppError):
    status_code = 401


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class InsufficientStockError(AppError):
    status_code = 409


class PreconditionFailedError(AppError):
    status_code = 412


def wants_json():
    return request.path.startswith(JSON_PATH_PREFIXES) or request.is_json


def error_response(message, status_code):
    if wants_json():
        return jsonify({"success": False, "message": message}), status_code
    return message, status_code, {"Content-Type": "text/plain; charset=utf-8"}


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        return error_response(err.message, err.status_code)

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(_err):
        db.session.rollback()
        app.logger.warning("Database integrity error on %s %s", request.method, request.path)
        return error_response("Conflict with existing data.", 409)

    @app.errorhandler(SQLAlchemyError)
    def handle_database_error(_err):
        db.session.rollback()
        app.logger.exception("Database error on %s %s", request.method, request.path)
        return error_response("Internal server error", 500)

    @app.errorhandler(400)
    def bad_request(_err):
        return error_response("Bad request", 400)

    @app.errorhandler(401)
    def unauthorized(_err):
        return error_response("Unauthorized", 401)

    @app.errorhandler(403)
    def forbidden(_err):
        return error_response("Forbidden", 403)

    @app.errorhandler(404)
    def not_found(_err):
        return error_response("Not found", 404)

    @app.errorhandler(405)
    def method_not_allowed(_err):
        return error_response("Method not allowed", 405)

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        return error_response("Something went wrong.", 500)
