import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file)
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./fne.db")
    DB_CREATE_TABLES = bool(data.get("DB_CREATE_TABLES", 1))  # Create missing tables on API startup
    API_PREFIX = data.get("API_PREFIX", "/api")
    API_PORT = data.get("API_PORT", 8000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    API_RELOAD = bool(data.get("API_RELOAD", 0))
    CORS_ORIGINS = data.get("CORS_ORIGINS", [])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))

    # FNE authority
    FNE_API_URL = data.get("FNE_API_URL", "http://54.247.95.108/ws/external")
    FNE_VERIFICATION_URL = data.get(
        "FNE_VERIFICATION_URL", "http://54.247.95.108/fr/verification"
    )
    FNE_TIMEOUT = data.get("FNE_TIMEOUT", 30.0)  # Seconds

    # Received items snapshot repair
    SNAPSHOT_REPAIR_ENABLED = bool(data.get("SNAPSHOT_REPAIR_ENABLED", True))
    SNAPSHOT_REPAIR_INTERVAL_SECONDS = data.get("SNAPSHOT_REPAIR_INTERVAL_SECONDS", 86400)  # Daily
