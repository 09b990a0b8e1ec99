"""
app/__init__.py — Flask application factory.

Pattern: create_app(config_name) creates and returns a configured Flask app.
         Nothing is initialised at import time — this enables:
           - Multiple isolated test app instances
           - A mocked expenses client per test app

Responsibilities:
  1. Load configuration from config_by_name[config_name]
  2. Initialise extensions (the expenses API client) via init_app()
  3. Register all route blueprints under /api/v1
  4. Register global error handlers (AppError → JSON, Exception → 500)
  5. Register a custom JSON provider to serialise Decimal as string
     (monetary amounts leave this service as strings, never floats)
"""

from __future__ import annotations

import traceback
from decimal import Decimal

from flask import Flask, jsonify, request
from flask.json.provider import DefaultJSONProvider
from marshmallow import ValidationError
from werkzeug.exceptions import HTTPException

from splitdesk.config import config_by_name, validate_production_config


# ── Custom JSON provider ───────────────────────────────────────────────────
# Flask's default JSON encoder does not handle Decimal.

class DecimalJSONProvider(DefaultJSONProvider):
    """
    Extends Flask's default JSON provider to serialise Decimal as str.

    Example: Decimal("3.330") → "3.330" (EQUAL shares keep their 3 dp)
    """

    def default(self, o):
        if isinstance(o, Decimal):
            return str(o)
        return super().default(o)


# ── Application factory ────────────────────────────────────────────────────

def create_app(config_name: str = "development") -> Flask:
    """
    Creates and returns a configured Flask application instance.

    Args:
        config_name: One of "development", "testing", "production".
                     Resolved via config_by_name in config.py.
                     Defaults to "development".

    Returns:
        A fully configured Flask app ready to serve requests.
    """
    app = Flask(__name__)
    app.json_provider_class = DecimalJSONProvider
    app.json = DecimalJSONProvider(app)

    # ── Configuration ──────────────────────────────────────────────────────
    config_class = config_by_name.get(config_name, config_by_name["development"])
    app.config.from_object(config_class)

    if config_name == "production":
        validate_production_config(app)  # raises ValueError if misconfigured

    # ── Extensions ─────────────────────────────────────────────────────────
    # Import here (not at module top) to avoid circular imports.
    from splitdesk.app.extensions import expenses_api
    expenses_api.init_app(app)

    _register_blueprints(app)
    _register_error_handlers(app)
    _register_cors(app)

    return app


def _register_blueprints(app: Flask) -> None:
    """
    Registers all route blueprints under the /api/v1 prefix.

    The url_prefix is set here so individual route files only specify
    the path relative to their resource.
    """
    from splitdesk.app.routes.expenses import expenses_bp
    from splitdesk.app.routes.shares import shares_bp

    app.register_blueprint(shares_bp,   url_prefix="/api/v1/shares")
    # expenses_bp owns /groups/<id>/expenses, so it sits at the API root.
    app.register_blueprint(expenses_bp, url_prefix="/api/v1")


def _register_error_handlers(app: Flask) -> None:
    """
    Registers global error handlers.

    Handlers:
      AppError        → structured JSON error envelope with the correct HTTP status
      ValidationError → marshmallow schema errors formatted as MISSING_FIELD /
                        INVALID_FIELD / registered-code responses (400)
      HTTPException   → werkzeug errors (404, 405, malformed JSON) in the same
                        envelope, status preserved
      Exception       → generic INTERNAL_ERROR (500); full traceback logged

    Stack traces never leave the server.
    """
    from splitdesk.app.errors import AppError, ErrorCode

    @app.errorhandler(AppError)
    def handle_app_error(error: AppError):
        """Routes never catch AppError — they let it propagate here."""
        return jsonify(error.to_dict()), error.http_status

    @app.errorhandler(ValidationError)
    def handle_validation_error(error: ValidationError):
        """
        Converts marshmallow ValidationError into the standard error envelope.

        Only the FIRST field error is returned. Nested errors (e.g. inside
        shares[2].amount) are reported with a dotted field path.
        """
        field, raw_message = _first_validation_error(error.messages)

        if raw_message in vars(ErrorCode).values():
            code = raw_message
            message = _code_to_message(code)
        elif str(raw_message).startswith("Missing data for required field"):
            code = ErrorCode.MISSING_FIELD
            message = raw_message
        else:
            code = ErrorCode.INVALID_FIELD
            message = raw_message

        response_body = {"error": {"code": code, "message": message}}
        if field is not None:
            response_body["error"]["field"] = field

        return jsonify(response_body), 400

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        # 400 here means the body was not JSON at all.
        if error.code == 400:
            code = ErrorCode.INVALID_FIELD
        else:
            code = error.name.upper().replace(" ", "_")  # "Not Found" → NOT_FOUND
        return jsonify({
            "error": {
                "code": code,
                "message": error.description,
            }
        }), error.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        """
        Catches all unhandled exceptions and returns a generic 500 response.

        The full traceback is logged to the application logger.
        """
        app.logger.error(
            "Unhandled exception: %s\n%s",
            str(error),
            traceback.format_exc(),
        )
        return jsonify({
            "error": {
                "code": ErrorCode.INTERNAL_ERROR,
                "message": "An unexpected error occurred. Please try again later.",
            }
        }), 500


def _register_cors(app: Flask) -> None:
    """
    Adds CORS headers for browser-based local development.

    Enabled when DEBUG or TESTING is true so the dashboard served from
    another local port can call the API with Authorization headers.
    """

    @app.after_request
    def add_cors_headers(response):
        origin = request.headers.get("Origin")
        allow_all = bool(app.config.get("DEBUG") or app.config.get("TESTING"))

        if allow_all:
            response.headers["Access-Control-Allow-Origin"] = origin if origin else "*"
            response.headers["Vary"] = "Origin"
            response.headers["Access-Control-Allow-Methods"] = "GET, POST, OPTIONS"
            response.headers["Access-Control-Allow-Headers"] = "Authorization, Content-Type"

        return response


def _first_validation_error(messages, prefix: str = "") -> tuple[str | None, str]:
    """
    Walks a marshmallow messages structure depth-first and returns
    (field_path, message) for the first error found.

    {"shares": {0: {"type": ["INVALID_SHARE_TYPE"]}}} → ("shares.0.type", "INVALID_SHARE_TYPE")
    """
    if isinstance(messages, dict):
        for key, value in messages.items():
            if key == "_schema":
                path = prefix or None
            else:
                path = f"{prefix}.{key}" if prefix else str(key)
            return _first_validation_error(value, path or "")
        return (prefix or None), "Invalid input."

    if isinstance(messages, list):
        if not messages:
            return (prefix or None), "Invalid value."
        first = messages[0]
        if isinstance(first, (dict, list)):
            return _first_validation_error(first, prefix)
        return (prefix or None), str(first)

    return (prefix or None), str(messages)


def _code_to_message(code: str) -> str:
    """
    Returns a human-readable default message for a known error code.
    Used when a ValidationError message IS the error code constant itself.
    """
    _messages = {
        "INVALID_SHARE_TYPE": "type must be one of FIXED, PERCENTAGE or EQUAL.",
        "INVALID_AMOUNT": "Amounts must be between 0 and 1000000000000000.",
        "INVALID_PERCENTAGE": "A percentage share must be between 0 and 100.",
    }
    return _messages.get(code, "Invalid input.")
