# backend/foodhub/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/foodhub.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///foodhub.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Sales order references: prefix + zero-padded association counter
    ORDER_REF_PREFIX = os.environ.get("ORDER_REF_PREFIX", "CMD-")
    ORDER_REF_PAD_LENGTH = int(os.environ.get("ORDER_REF_PAD_LENGTH", "6"))
