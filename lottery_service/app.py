from __future__ import annotations

from flask import Flask, jsonify
from pydantic import ValidationError
from werkzeug.exceptions import HTTPException

from lottery.errors import LotteryError, TransferError

from .config import load_settings
from .db import engine
from .models import Base
from .routes.accounts import bp as accounts_bp
from .routes.admin import bp as admin_bp
from .routes.config import bp as config_bp
from .routes.health import bp as health_bp
from .routes.round import bp as round_bp
from .services.ledger import SqlLedger
from .services.rounds import RoundService


def create_app() -> Flask:
    settings = load_settings()
    app = Flask(__name__)
    app.config["SECRET_KEY"] = settings.flask.secret_key
    Base.metadata.create_all(engine)

    app.extensions["lottery_rounds"] = RoundService(settings.round, SqlLedger())

    app.register_blueprint(health_bp)
    app.register_blueprint(round_bp, url_prefix="/round")
    app.register_blueprint(accounts_bp, url_prefix="/accounts")
    app.register_blueprint(admin_bp, url_prefix="/admin/api")
    app.register_blueprint(config_bp)

    @app.errorhandler(LotteryError)
    def handle_lottery_error(exc: LotteryError):
        return jsonify(exc.to_dict()), exc.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(exc: ValidationError):
        details = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        return jsonify({"error": "validation_error", "details": details}), 400

    @app.errorhandler(TransferError)
    def handle_transfer_error(exc: TransferError):
        app.logger.error("Value transfer failed: %s", exc)
        return jsonify({"error": "transfer_failed", "message": str(exc)}), 502

    @app.errorhandler(HTTPException)
    def handle_http_error(exc: HTTPException):
        return jsonify({"error": exc.name.lower().replace(" ", "_"), "message": exc.description}), exc.code

    @app.errorhandler(Exception)
    def handle_error(exc: Exception):
        app.logger.exception("Unhandled error: %s", exc)
        return jsonify({"error": str(exc)}), 500

    return app
