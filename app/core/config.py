from os import getenv


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings:
    DATABASE_URL = getenv("DATABASE_URL", "postgresql+psycopg://rtask:rtask@db:5432/rtask")

    JWT_SECRET = getenv("JWT_SECRET", "dev-secret-change-in-prod")
    JWT_EXPIRE_MIN = int(getenv("JWT_EXPIRE_MIN", "1440"))  # 24h
    RESET_TOKEN_EXPIRE_MIN = int(getenv("RESET_TOKEN_EXPIRE_MIN", "60"))

    RESEND_API_KEY = getenv("RESEND_API_KEY", "")
    RESEND_API_URL = getenv("RESEND_API_URL", "https://api.resend.com/emails")
    EMAIL_FROM = getenv("EMAIL_FROM", "RTASK <onboarding@resend.dev>")
    FRONTEND_URL = getenv("FRONTEND_URL", "http://localhost:5173")

    GOOGLE_CLIENT_ID = getenv("GOOGLE_CLIENT_ID", "")
    GOOGLE_TOKENINFO_URL = getenv("GOOGLE_TOKENINFO_URL", "https://oauth2.googleapis.com/tokeninfo")

    UPLOAD_DIR = getenv("UPLOAD_DIR", "uploads")
    MAX_AVATAR_BYTES = int(getenv("MAX_AVATAR_BYTES", str(5 * 1024 * 1024)))

    CORS_ORIGINS = _split_csv(getenv("CORS_ORIGINS", "*"))
    # day boundaries of the today/overdue/this-week views
    TIMEZONE = getenv("TIMEZONE", "UTC")

    LOG_LEVEL = getenv("LOG_LEVEL", "INFO").upper()
    HTTP_TIMEOUT = float(getenv("HTTP_TIMEOUT", "10"))

settings = Settings()
