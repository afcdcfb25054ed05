"""Root conftest: shared test configuration."""

import os

os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///:memory:",
)
os.environ.setdefault("ADMIN_PASSWORD", "letmein")
os.environ.setdefault("LOG_FORMAT", "text")
