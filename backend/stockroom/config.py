# backend/stockroom/config.py
from __future__ import annotations
import os


def _env_flag(name: str, default: str = "false") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/stockroom.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///stockroom.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    CORS_ALLOWED_ORIGINS = [
        origin.strip()
        for origin in os.environ.get(
            "CORS_ALLOWED_ORIGINS",
            "http://localhost:5173,http://127.0.0.1:5173,http://localhost:8080",
        ).split(",")
        if origin.strip()
    ]

    # Restore replaces tables one by one unless this is set
    BACKUP_RESTORE_ATOMIC = _env_flag("BACKUP_RESTORE_ATOMIC")

    # Invoice layout
    PDF_CURRENCY_SYMBOL = os.environ.get("PDF_CURRENCY_SYMBOL", "Tk")
    COMPANY_NAME = os.environ.get("COMPANY_NAME", "Your Company Name")
    COMPANY_ADDRESS = os.environ.get("COMPANY_ADDRESS", "Your Company Address")
    COMPANY_PHONE = os.environ.get("COMPANY_PHONE", "Your Phone Number")
