import os
from urllib.parse import quote_plus


def _sqlite_db_uri(db_filename: str = "eprofos.db") -> str:
    """SQLite URI for the local back-office database under ``instance/``."""
    instance_dir = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir, "instance"))
    os.makedirs(instance_dir, exist_ok=True)
    return "sqlite:///" + os.path.join(instance_dir, db_filename).replace("\\", "/")


def _database_uri() -> str:
    """DATABASE_URL wins, then the CRM postgres credentials, then local SQLite."""
    if os.environ.get("DATABASE_URL"):
        return os.environ["DATABASE_URL"]

    host = os.environ.get("APP_HOST")
    user = os.environ.get("APP_USER")
    password = os.environ.get("APP_PASSWORD")
    if not (host and user and password):
        return _sqlite_db_uri()

    name = quote_plus(os.environ.get("DB_NAME", "eprofos"))
    port = os.environ.get("DB_PORT", "5432")
    return f"postgresql+psycopg2://{quote_plus(user)}:{quote_plus(password)}@{host}:{port}/{name}"


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-change-me")

    SQLALCHEMY_DATABASE_URI = _database_uri()

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Dev convenience: auto-create tables when no migrations were run yet.
    # In production run `flask db upgrade` instead.
    AUTO_CREATE_DB = os.environ.get("AUTO_CREATE_DB", "true").lower() == "true"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()

    # -----------------
    # Prospect notifications (sent after each touchpoint merge)
    # -----------------
    PROSPECT_NOTIFICATIONS_ENABLED = os.environ.get("PROSPECT_NOTIFICATIONS_ENABLED", "false").lower() == "true"
    PROSPECT_NOTIFY_EMAIL = os.environ.get("PROSPECT_NOTIFY_EMAIL", "")

    # SMTP / Email (used by Flask-Mail)
    MAIL_SERVER = os.environ.get("MAIL_SERVER", "")
    MAIL_PORT = int(os.environ.get("MAIL_PORT", "587"))
    MAIL_USE_TLS = os.environ.get("MAIL_USE_TLS", "true").lower() == "true"
    MAIL_USE_SSL = os.environ.get("MAIL_USE_SSL", "false").lower() == "true"
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME", "")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD", "")
    MAIL_DEFAULT_SENDER = os.environ.get("MAIL_DEFAULT_SENDER", "noreply@eprofos.fr")


class DevConfig(Config):
    DEBUG = True


class ProdConfig(Config):
    DEBUG = False
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "WARNING").upper()


class TestConfig(Config):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    AUTO_CREATE_DB = False
    PROSPECT_NOTIFICATIONS_ENABLED = False
    MAIL_SUPPRESS_SEND = True
    SECRET_KEY = "test"
