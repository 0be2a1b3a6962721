"""
Environment-aware configuration.
Token lifetimes (JWT_EXPIRE_IN, JWT_REFRESH_EXPIRE_IN) are whole seconds;
validate_config() rejects anything else at startup.
"""
import os
from dotenv import load_dotenv

load_dotenv()  # Read .env if present

PROFILE_IMAGE_MAX_SIZE = 25 * 1024 * 1024


class ConfigurationError(Exception):
    """
    Raised when a required setting is missing or malformed.
    """
    pass


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")  # Set a strong key in production
    DEBUG = False
    TESTING = False
    # CORS: in dev we usually allow '*', in prod supply a comma-separated list in env
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*")
    APP_ENV = os.getenv("APP_ENV", "dev")
    DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///profile-auth.db")
    SQL_ECHO = False

    # jwt configurations
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "dev-access-secret-change-me")
    JWT_REFRESH_SECRET_KEY = os.getenv("JWT_REFRESH_SECRET_KEY", "dev-refresh-secret-change-me")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_EXPIRE_IN = os.getenv("JWT_EXPIRE_IN", "900")  # 15 minutes
    JWT_REFRESH_EXPIRE_IN = os.getenv("JWT_REFRESH_EXPIRE_IN", "604800")  # 7 days

    # argon2 work factors
    PASSWORD_HASH_TIME_COST = int(os.getenv("PASSWORD_HASH_TIME_COST", "3"))
    PASSWORD_HASH_MEMORY_COST = int(os.getenv("PASSWORD_HASH_MEMORY_COST", "65536"))
    PASSWORD_HASH_PARALLELISM = int(os.getenv("PASSWORD_HASH_PARALLELISM", "4"))

    # uploads
    UPLOAD_FOLDER = os.getenv("UPLOAD_FOLDER", os.path.join(os.getcwd(), "uploads"))
    PROFILE_IMAGE_URL_PREFIX = os.getenv("PROFILE_IMAGE_URL_PREFIX", "/profile-images")
    MAX_PROFILE_IMAGE_SIZE = PROFILE_IMAGE_MAX_SIZE
    # leave room for the form fields around the image
    MAX_CONTENT_LENGTH = PROFILE_IMAGE_MAX_SIZE + 1024 * 1024


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    # In dev, propagate exceptions so our error handler has full context
    PROPAGATE_EXCEPTIONS = True


class TestingConfig(BaseConfig):
    TESTING = True
    DATABASE_URL = "sqlite://"
    JWT_SECRET_KEY = "test-access-secret"
    JWT_REFRESH_SECRET_KEY = "test-refresh-secret"
    JWT_EXPIRE_IN = 900
    JWT_REFRESH_EXPIRE_IN = 3600
    # cheap hashing keeps the suite fast
    PASSWORD_HASH_TIME_COST = 1
    PASSWORD_HASH_MEMORY_COST = 8
    PASSWORD_HASH_PARALLELISM = 1


class ProductionConfig(BaseConfig):
    DEBUG = False


def get_config(name: str | None):
    """
    Select config class.
    - If name is provided, choose by name.
    - Else choose based on APP_ENV (dev/test/prod).
    """
    env = (name or os.getenv("APP_ENV", "dev")).lower()
    if env in ["prod", "production"]:
        return ProductionConfig
    if env in ["test", "testing"]:
        return TestingConfig
    return DevelopmentConfig


def parse_seconds(key: str, value) -> int:
    """
    Parse a token lifetime. Accepts a positive int or a digit string;
    duration strings ("15m"), floats, zero and negatives are rejected.
    """
    if isinstance(value, bool):
        raise ConfigurationError(f"{key} must be a positive number of seconds, got {value!r}")
    if isinstance(value, int):
        seconds = value
    elif isinstance(value, str) and value.strip().isdigit():
        seconds = int(value.strip())
    else:
        raise ConfigurationError(f"{key} must be a positive number of seconds, got {value!r}")
    if seconds <= 0:
        raise ConfigurationError(f"{key} must be a positive number of seconds, got {value!r}")
    return seconds


def validate_config(config) -> None:
    """
    Fail fast on misconfiguration. Normalizes the token lifetimes to int in place.
    """
    for key in ("JWT_SECRET_KEY", "JWT_REFRESH_SECRET_KEY", "DATABASE_URL", "UPLOAD_FOLDER"):
        if not config.get(key):
            raise ConfigurationError(f"{key} is required")
    if config["JWT_SECRET_KEY"] == config["JWT_REFRESH_SECRET_KEY"]:
        raise ConfigurationError("JWT_SECRET_KEY and JWT_REFRESH_SECRET_KEY must differ")

    access = parse_seconds("JWT_EXPIRE_IN", config.get("JWT_EXPIRE_IN"))
    refresh = parse_seconds("JWT_REFRESH_EXPIRE_IN", config.get("JWT_REFRESH_EXPIRE_IN"))
    if refresh <= access:
        raise ConfigurationError("JWT_REFRESH_EXPIRE_IN must be longer than JWT_EXPIRE_IN")
    config["JWT_EXPIRE_IN"] = access
    config["JWT_REFRESH_EXPIRE_IN"] = refresh

    prefix = config.get("PROFILE_IMAGE_URL_PREFIX", "")
    if not prefix.startswith("/") or prefix == "/":
        raise ConfigurationError("PROFILE_IMAGE_URL_PREFIX must be an absolute path such as /profile-images")
