import logging

from flask import Flask, jsonify
from flask_cors import CORS
from werkzeug.exceptions import HTTPException

from settleup.config import Config
from settleup.core.errors import LedgerConsistencyError, SettleUpError, ValidationError
from settleup.extensions import init_store

logger = logging.getLogger(__name__)


def create_app(config_class=Config, store=None):
    app = Flask(__name__)
    app.config.from_object(config_class)
    app.json.sort_keys = False

    logging.basicConfig(
        level=app.config.get("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )

    # Disable strict slashes to prevent 308 redirects that break CORS preflight
    app.url_map.strict_slashes = False

    # Allow the React frontend to talk to Flask
    CORS(app, resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}})

    init_store(app, store)

    # Register blueprints
    from settleup.groups.routes import groups_bp
    from settleup.expenses.routes import expenses_bp
    from settleup.settlements.routes import settlements_bp

    app.register_blueprint(groups_bp, url_prefix='/api/v1/groups')
    app.register_blueprint(expenses_bp, url_prefix='/api/v1')
    app.register_blueprint(settlements_bp, url_prefix='/api/v1')

    register_error_handlers(app)

    @app.route('/api/v1/health', methods=['GET'])
    def health_check():
        return jsonify({"status": "healthy"})

    return app


def register_error_handlers(app):

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        logger.warning("Rejected request: %s", e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(LedgerConsistencyError)
    def handle_consistency_error(e):
        logger.error("Ledger consistency failure: %s %s", e.message, e.details)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(SettleUpError)
    def handle_engine_error(e):
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        if isinstance(e, HTTPException):
            return jsonify({"error": e.description}), e.code
        logger.exception("Unhandled error")
        return jsonify({"error": "An internal error occurred"}), 500
