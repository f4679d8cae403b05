import os


def normalize_database_url(raw_url: str) -> str:
    if raw_url.startswith("postgres://"):
        return raw_url.replace("postgres://", "postgresql://", 1)
    return raw_url


def parse_rider_pool(raw: str):
    """Parse ``"R001:John Doe,R002:Jane Smith"`` into a list of rider dicts."""
    riders = []
    for item in (raw or "").split(","):
        item = item.strip()
        if not item:
            continue
        rider_id, _, name = item.partition(":")
        riders.append({"id": rider_id.strip(), "name": name.strip() or rider_id.strip()})
    return riders


class BaseConfig:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-unsafe-key")
    SQLALCHEMY_DATABASE_URI = normalize_database_url(
        os.getenv("DATABASE_URL", "sqlite:///instance/aupgrab.db")
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT", "600 per hour;60 per minute")
    RATELIMIT_ENABLED = True

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    SENTRY_DSN = os.getenv("SENTRY_DSN")

    AUTO_ASSIGN_AFTER_MINUTES = int(os.getenv("AUTO_ASSIGN_AFTER_MINUTES", "5"))
    SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", "0"))
    DISPATCH_STRATEGY = os.getenv("DISPATCH_STRATEGY", "random")
    RIDER_POOL = parse_rider_pool(
        os.getenv("RIDER_POOL", "R001:John Doe,R002:Jane Smith,R003:Mike Johnson")
    )
    ETA_MIN_MINUTES = int(os.getenv("ETA_MIN_MINUTES", "25"))
    ETA_MAX_MINUTES = int(os.getenv("ETA_MAX_MINUTES", "45"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")


class ProductionConfig(BaseConfig):
    DEBUG = False
    TESTING = False
    SWEEP_INTERVAL_SECONDS = int(os.getenv("SWEEP_INTERVAL_SECONDS", "180"))


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    RATELIMIT_ENABLED = False
    SWEEP_INTERVAL_SECONDS = 0
    DISPATCH_STRATEGY = "round_robin"
    RIDER_POOL = parse_rider_pool("R001:John Doe,R002:Jane Smith,R003:Mike Johnson")


config_by_env = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
}
