import logging
import os
from flask import Flask, jsonify
from flask_sqlalchemy import SQLAlchemy
from sqlalchemy.orm import DeclarativeBase
from werkzeug.exceptions import HTTPException
from werkzeug.middleware.proxy_fix import ProxyFix
from config import Config

# Set up logging - use INFO in production, DEBUG only when DEV_MODE is set
log_level = logging.DEBUG if os.environ.get('DEV_MODE', '').lower() == 'true' else logging.INFO
logging.basicConfig(level=log_level)
logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

db = SQLAlchemy(model_class=Base)

def create_app(testing: bool = False, config_overrides: dict = None):
    """Application factory.

    Side effects (DB create_all) are gated by config flags.
    """
    app = Flask(__name__)
    app.config.from_object(Config)
    if testing:
        app.config['TESTING'] = True

    # Refresh env-dependent config at runtime.
    dev_mode = os.environ.get('DEV_MODE', '').lower() == 'true'
    database_url = os.environ.get('DATABASE_URL')
    if not database_url:
        db_user = os.environ.get('DB_USER')
        db_password = os.environ.get('DB_PASSWORD')
        db_name = os.environ.get('DB_NAME')
        db_host = os.environ.get('DB_HOST', 'localhost')
        db_port = os.environ.get('DB_PORT', '5432')
        if db_user and db_password and db_name:
            database_url = f"postgresql://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"

    app.config.update({
        'DEV_MODE': dev_mode,
        'DATABASE_URL': database_url,
        'SECRET_KEY': os.environ.get('SECRET_KEY'),
        'AUTO_CREATE_DB': os.environ.get("AUTO_CREATE_DB", "true" if dev_mode else "false").lower() == "true",
    })

    app.wsgi_app = ProxyFix(app.wsgi_app, x_proto=1, x_host=1)

    # Configure the database
    app.config["SQLALCHEMY_DATABASE_URI"] = app.config.get("DATABASE_URL")
    app.config["SQLALCHEMY_ENGINE_OPTIONS"] = {
        "pool_recycle": 300,
        "pool_pre_ping": True,
    }
    app.config["SQLALCHEMY_TRACK_MODIFICATIONS"] = False

    # Explicit overrides win (tests point the engine at in-memory SQLite here)
    if config_overrides:
        app.config.update(config_overrides)

    # Validate database, Overpass and scoring rules settings before continuing.
    # In tests we only log failures.
    from utils.startup_checks import StartupValidator

    startup_results = StartupValidator.validate(app.config, raise_on_error=not app.config.get('TESTING', False))
    logger.info(
        "Startup checks complete (valid=%s), features: %s",
        startup_results['valid'],
        ", ".join(name for name, enabled in startup_results['features'].items() if enabled) or "none",
    )

    # Initialize the app with the extension
    db.init_app(app)

    # Import and register routes
    from routes.area_routes import area_bp
    from routes.market_routes import market_bp
    from routes.profile_routes import profile_bp

    app.register_blueprint(area_bp)
    app.register_blueprint(market_bp, url_prefix='/market')
    app.register_blueprint(profile_bp)

    register_error_handlers(app)

    # Initialize caching
    from utils.cache import init_cache
    init_cache(app)

    with app.app_context():
        # Import models to ensure metadata is registered
        import models  # noqa: F401

        # Optional dev convenience: auto-create tables
        if app.config.get('AUTO_CREATE_DB', False):
            db.create_all()

    logger.info("Application initialized successfully")

    return app

def register_error_handlers(app):
    """Render typed scoring errors and HTTP errors as JSON envelopes."""
    from utils.errors import ScoringError

    @app.errorhandler(ScoringError)
    def handle_scoring_error(error):
        if error.status_code >= 500:
            logger.error("%s: %s", error.name, error)
        else:
            logger.info("%s: %s", error.name, error)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(error):
        return jsonify({
            "success": False,
            "error": error.name,
            "detail": error.description,
        }), error.code

__all__ = ["create_app", "db"]
