import os
from dotenv import load_dotenv
load_dotenv()


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    APP_NAME = os.getenv("APP_NAME", "betdesk-api")
    APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
    APP_ENV = os.getenv("APP_ENV", "dev")
    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "8000"))
    TZ = os.getenv("APP_TZ", "Asia/Kolkata")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "WARNING")

    DATABASE_URL = os.getenv("DATABASE_URL") or (
        f"mysql+aiomysql://{os.getenv('MYSQL_USER','root')}:{os.getenv('MYSQL_PASSWORD','123456')}"
        f"@{os.getenv('MYSQL_HOST','127.0.0.1')}:{os.getenv('MYSQL_PORT','3306')}/{os.getenv('MYSQL_DB','betdesk')}?charset=utf8mb4"
    )
    REDIS_URL = os.getenv("REDIS_URL") or (
        f"redis://{os.getenv('REDIS_HOST','127.0.0.1')}:{os.getenv('REDIS_PORT','6379')}/{os.getenv('REDIS_DB','0')}"
    )

    JWT_SECRET = os.getenv("JWT_SECRET", "change_me")
    JWT_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "43200"))
    PASSWORD_SALT = os.getenv("PASSWORD_SALT", "change_me")

    # smallest currency unit (paise)
    BET_MIN_AMOUNT = int(os.getenv("BET_MIN_AMOUNT", "10"))
    BET_MAX_AMOUNT = int(os.getenv("BET_MAX_AMOUNT", "10000000"))

    HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "200"))

    ADMIN_USERNAME = os.getenv("ADMIN_USERNAME", "admin")
    ADMIN_PASSWORD = os.getenv("ADMIN_PASSWORD", "admin123")

    SCHEDULER_ENABLED = _flag("SCHEDULER_ENABLED", "1")
    CLOSE_POLL_SECONDS = int(os.getenv("CLOSE_POLL_SECONDS", "15"))

settings = Settings()
