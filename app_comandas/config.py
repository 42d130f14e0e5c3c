# -*- coding: utf-8 -*-
"""Service settings, read from environment variables."""
import os

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite+aiosqlite:///./comandas.db")
SQL_ECHO = os.getenv("SQL_ECHO", "false").lower() in ("1", "true", "yes")

# Event publishing is skipped when no broker is configured.
RABBITMQ_URL = os.getenv("RABBITMQ_URL")
RABBITMQ_EXCHANGE = os.getenv("RABBITMQ_EXCHANGE", "comandas")

HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "100"))

APP_VERSION = os.getenv("APP_VERSION", "1.0.0")
SERVICE_PORT = int(os.getenv("SERVICE_PORT", "5000"))
SERVICE_CERT_FILE = os.getenv("SERVICE_CERT_FILE")
SERVICE_KEY_FILE = os.getenv("SERVICE_KEY_FILE")
