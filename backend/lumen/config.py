# backend/lumen/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored next to the process unless DATABASE_URL is set
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL",
        "sqlite:///lumen.sqlite3",
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Completed sales can be cancelled for this many hours after sale_date
    SALE_CANCELLATION_WINDOW_HOURS = int(os.environ.get("SALE_CANCELLATION_WINDOW_HOURS", "24"))

    SESSION_TTL_HOURS = int(os.environ.get("SESSION_TTL_HOURS", "24"))

    # minimum_stock applied when product creation omits one
    LOW_STOCK_DEFAULT_MINIMUM = int(os.environ.get("LOW_STOCK_DEFAULT_MINIMUM", "0"))
