"""Configuration settings for the document store server."""

import os

from common.constants import DEFAULT_SERVER_PORT, DEFAULT_STORAGE_LIMIT_BYTES


DATABASE_PATH = os.environ.get("DOCSTORE_DATABASE_PATH", "/app/data/docstore.db")

SERVER_HOST = os.environ.get("DOCSTORE_HOST", "0.0.0.0")

SERVER_PORT = int(os.environ.get("DOCSTORE_PORT", str(DEFAULT_SERVER_PORT)))

DEFAULT_STORAGE_LIMIT = int(
    os.environ.get("DOCSTORE_DEFAULT_STORAGE_LIMIT", str(DEFAULT_STORAGE_LIMIT_BYTES))
)

# Shared secret the identity service presents when provisioning users.
INTERNAL_TOKEN = os.environ.get("DOCSTORE_INTERNAL_TOKEN", "")

CONTENT_STORE_URL = os.environ.get("CONTENT_STORE_URL", "http://content-store:9000/documents")

CONTENT_STORE_TIMEOUT_SECONDS = float(os.environ.get("CONTENT_STORE_TIMEOUT_SECONDS", "10"))

CONTENT_STORE_MAX_RETRIES = int(os.environ.get("CONTENT_STORE_MAX_RETRIES", "3"))

WS_CONTROL_URL = os.environ.get("WS_CONTROL_URL", "http://localhost:1234/collab-event")

NOTIFY_TIMEOUT_SECONDS = float(os.environ.get("NOTIFY_TIMEOUT_SECONDS", "5"))

NOTIFY_DISPATCH_INTERVAL_SECONDS = int(os.environ.get("NOTIFY_DISPATCH_INTERVAL_SECONDS", "30"))

NOTIFY_MAX_ATTEMPTS = int(os.environ.get("NOTIFY_MAX_ATTEMPTS", "5"))

NOTIFY_BATCH_SIZE = 100
