
from flask import jsonify


class AppError(Exception):
    status_code = 400

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(AppError):
    status_code = 400


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class StoreError(AppError):
    status_code = 500


def failure_payload(message, **extra):
    payload = {"success": False, "message": message or ""}
    payload.update(extra)
    return payload


def register_error_handlers(app):
    @app.errorhandler(AppError)
    def handle_app_error(err):
        return jsonify(failure_payload(err.message)), err.status_code

    @app.errorhandler(400)
    def bad_request(_err):
        return jsonify(failure_payload("Bad request")), 400

    @app.errorhandler(404)
    def not_found(_err):
        return jsonify(failure_payload("Not found")), 404

    @app.errorhandler(405)
    def method_not_allowed(_err):
        return jsonify(failure_payload("Method not allowed")), 405

    @app.errorhandler(429)
    def too_many_requests(_err):
        return jsonify(failure_payload("Too many requests")), 429

    @app.errorhandler(500)
    def server_error(_err):
        app.logger.exception("Internal server error")
        return jsonify(failure_payload("Internal server error")), 500
