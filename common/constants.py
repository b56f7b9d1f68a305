"""Project-wide constants shared by the server and the CLI."""

API_KEY_PREFIX: str = "dsk_"

DEFAULT_SERVER_PORT: int = 8000

DEFAULT_STORAGE_LIMIT_BYTES: int = 100 * 1024 * 1024  # 100 MiB per user

REQUEST_ID_HEADER: str = "X-Request-ID"

INTERNAL_TOKEN_HEADER: str = "X-Internal-Token"
