import logging
from datetime import datetime

from flask import Flask, jsonify
from flask_bcrypt import Bcrypt
from flask_cors import CORS
from flask_jwt_extended import JWTManager
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException

from tripbudget.config import Config
from tripbudget.extensions import init_mongo, ensure_indexes
from tripbudget.utils.validators import ValidationError

bcrypt = Bcrypt()
jwt = JWTManager()

logger = logging.getLogger(__name__)


def configure_logging(level):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s"
    )


def create_app(config_class=Config):
    app = Flask(__name__)
    app.config.from_object(config_class)
    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    # Disable strict slashes to prevent 308 redirects that break CORS preflight
    app.url_map.strict_slashes = False

    CORS(
        app,
        supports_credentials=True,
        resources={r"/api/*": {"origins": app.config["CORS_ORIGINS"]}}
    )

    # Init extensions
    init_mongo(app)
    if app.config.get("MONGO_ENSURE_INDEXES"):
        try:
            ensure_indexes()
        except PyMongoError as e:
            logger.warning("Could not create MongoDB indexes, run `flask init-db` later: %s", e)
    bcrypt.init_app(app)
    jwt.init_app(app)

    # Register blueprints
    from tripbudget.auth.routes import auth_bp
    from tripbudget.trips.routes import trips_bp
    from tripbudget.budgets.routes import budget_bp

    app.register_blueprint(auth_bp, url_prefix='/api/v1/auth')
    app.register_blueprint(trips_bp, url_prefix='/api/v1/trips')
    app.register_blueprint(budget_bp, url_prefix='/api/v1/budget')

    @app.route('/api/health', methods=['GET'])
    def health():
        return jsonify({"status": "ok", "timestamp": datetime.utcnow().isoformat()})

    @app.cli.command('init-db')
    def init_db():
        """Create MongoDB indexes."""
        ensure_indexes()
        print("Indexes created")

    register_error_handlers(app)

    return app


def register_error_handlers(app):
    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return jsonify({"error": str(e)}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"error": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        logger.exception("Unhandled error: %s", e)
        return jsonify({"error": "Internal server error"}), 500


@jwt.unauthorized_loader
def missing_token(reason):
    return jsonify({"error": reason}), 401


@jwt.invalid_token_loader
def invalid_token(reason):
    return jsonify({"error": reason}), 401


@jwt.expired_token_loader
def expired_token(jwt_header, jwt_payload):
    return jsonify({"error": "Token has expired"}), 401
