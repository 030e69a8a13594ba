from __future__ import annotations

from typing import Dict, Optional, Type

from flask import Flask
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from .config import AppSettings, load_settings
from .errors import (
    AlreadyCompleted,
    AuthenticationError,
    AuthorizationError,
    DrawClosed,
    DrawNotFound,
    DrawUnavailable,
    InvalidNumbers,
    InvalidParameters,
    LotteryError,
    TicketLimitExceeded,
)
from .extensions import MANAGER_KEY, SETTINGS_KEY
from .responses import fail
from .routes.admin import bp as admin_bp
from .routes.config import bp as config_bp
from .routes.health import bp as health_bp
from .routes.lottery import bp as lottery_bp
from .routes.tickets import bp as tickets_bp
from .services.lifecycle import DrawLifecycleManager, LotteryStore
from .services.store import SqlLotteryStore

ERROR_STATUS: Dict[Type[LotteryError], int] = {
    InvalidParameters: 400,
    InvalidNumbers: 400,
    DrawUnavailable: 409,
    DrawClosed: 409,
    TicketLimitExceeded: 409,
    DrawNotFound: 404,
    AlreadyCompleted: 409,
    AuthenticationError: 401,
    AuthorizationError: 403,
}


def error_status(exc: LotteryError) -> int:
    for error_type in type(exc).__mro__:
        if error_type in ERROR_STATUS:
            return ERROR_STATUS[error_type]
    return 400


def build_store(settings: AppSettings) -> SqlLotteryStore:
    store = SqlLotteryStore.from_url(settings.database_url)
    store.create_schema()
    return store


def create_app(
    settings: Optional[AppSettings] = None,
    store: Optional[LotteryStore] = None,
) -> Flask:
    settings = settings or load_settings()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.flask.secret_key
    app.config["DEBUG"] = settings.flask.debug

    if store is None:
        store = build_store(settings)
    manager = DrawLifecycleManager(store, settings.lottery, logger=app.logger)
    app.extensions[SETTINGS_KEY] = settings
    app.extensions[MANAGER_KEY] = manager

    app.register_blueprint(health_bp)
    app.register_blueprint(config_bp)
    app.register_blueprint(lottery_bp, url_prefix="/api/lottery")
    app.register_blueprint(tickets_bp, url_prefix="/api/tickets")
    app.register_blueprint(admin_bp, url_prefix="/api/admin")

    @app.errorhandler(LotteryError)
    def handle_lottery_error(exc: LotteryError):
        return fail(exc.code, exc.message, error_status(exc), exc.details)

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        details = exc.errors(include_url=False, include_context=False)
        return fail("validation_error", "Validation error", 400, details)

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        status = exc.code or 500
        if status == 404:
            return fail("not_found", "Not found", 404)
        return fail("http_error", exc.description or "HTTP error", status)

    @app.errorhandler(Exception)
    def handle_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        return fail("internal_error", "Internal server error", 500)

    return app
