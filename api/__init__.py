from flask import Flask
from flasgger import Swagger
from flask_cors import CORS
import logging

from .config import get_config, validate_config
from .errors import register_error_handlers
from models import DBStorage
from services.auth_service import AuthService
from utils.security import PasswordHasher, TokenIssuer

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0",
    "info": {
        "title": "Profile Auth API",
        "version": "1.0.0",
        "description": "User registration with profile images, JWT login, refresh-token rotation and logout.",
    },
    "basePath": "/",
    "schemes": ["http"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the access token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def create_app(config_name: str | None = None, overrides: dict | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.
    overrides are applied on top of the selected config class (tests use this
    to point the database and uploads at a temporary directory).
    Raises ConfigurationError before wiring anything if the config is invalid.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    if overrides:
        app.config.update(overrides)
    validate_config(app.config)

    # Cross-Origin Resource Sharing: enable for dev, configurable for prod
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}})

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()
    issuer = TokenIssuer.from_config(app.config)
    hasher = PasswordHasher.from_config(app.config)
    app.extensions["storage"] = storage
    app.extensions["token_issuer"] = issuer
    app.extensions["auth_service"] = AuthService(storage, hasher, issuer)

    from .health import bp as health_bp
    from .auth import bp as auth_bp
    from .uploads import register_profile_image_route

    app.register_blueprint(health_bp)
    app.register_blueprint(auth_bp)
    register_profile_image_route(app)

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Profile Auth API",
            "docs": "/apidocs/",
            "health": "/health",
        }, 200

    logger.info("App created (env=%s)", app.config.get("APP_ENV"))
    return app
