# backend/stockroom/config.py
from __future__ import annotations
import os


def _split_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///stockroom.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Uploaded photos (avatars, product photos, invoice photos)
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", os.path.join(os.getcwd(), "uploads"))
    PUBLIC_UPLOAD_URL = os.environ.get("PUBLIC_UPLOAD_URL", "/uploads")
    MAX_CONTENT_LENGTH = int(os.environ.get("MAX_CONTENT_LENGTH", str(5 * 1024 * 1024)))

    # Sign-up restriction, e.g. "zola-pizza.com". Empty means any domain.
    ALLOWED_EMAIL_DOMAIN = os.environ.get("ALLOWED_EMAIL_DOMAIN", "")

    # Generative-language endpoint used by the insights page
    GOOGLE_API_KEY = os.environ.get("GOOGLE_API_KEY")
    INSIGHTS_API_URL = os.environ.get(
        "INSIGHTS_API_URL",
        "https://generativelanguage.googleapis.com/v1beta/models",
    )
    INSIGHTS_MODEL = os.environ.get("INSIGHTS_MODEL", "gemini-1.5-flash")
    INSIGHTS_TIMEOUT_SECONDS = float(os.environ.get("INSIGHTS_TIMEOUT_SECONDS", "60"))
    # httpx transport override (tests inject httpx.MockTransport)
    INSIGHTS_HTTP_TRANSPORT = None
    RESTAURANT_NAME = os.environ.get("RESTAURANT_NAME", "Zola Pizza")

    CORS_ALLOWED_ORIGINS = _split_csv(os.environ.get("CORS_ALLOWED_ORIGINS")) or [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:8080",
        "http://127.0.0.1:8080",
    ]

    APP_VERSION = os.environ.get("APP_VERSION", "1.0.0")
