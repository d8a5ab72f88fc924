"""Environment-driven settings.

Values come from the process environment, optionally seeded from a `.env`
file in the working directory via python-dotenv.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

SUPPORTED_BACKENDS = ("sqlite", "memory")


@dataclass(frozen=True)
class Settings:
    app_env: str
    storage_backend: str
    database_dir: Optional[str]
    processor_service_url: str
    processor_timeout_seconds: float
    upload_dir: Path
    output_dir: Path
    max_upload_bytes: int
    log_level: str
    log_dir: Optional[Path]

    @property
    def is_development(self) -> bool:
        return self.app_env == "development"


def get_settings() -> Settings:
    """Load `.env` (if present) and build a Settings snapshot from the environment.

    Raises:
        RuntimeError: If STORAGE_BACKEND names an unknown backend.
    """
    load_dotenv()

    app_env = os.getenv("APP_ENV", "production")

    backend = os.getenv("STORAGE_BACKEND", "sqlite").strip().lower()
    if backend not in SUPPORTED_BACKENDS:
        raise RuntimeError(f"Unsupported STORAGE_BACKEND: {backend}")

    log_dir = os.getenv("LOG_DIR")
    default_level = "DEBUG" if app_env == "development" else "INFO"

    return Settings(
        app_env=app_env,
        storage_backend=backend,
        database_dir=os.getenv("DATABASE_DIR"),
        processor_service_url=os.getenv("PROCESSOR_SERVICE_URL", "http://localhost:8000").rstrip("/"),
        processor_timeout_seconds=float(os.getenv("PROCESSOR_TIMEOUT_SECONDS", "10")),
        upload_dir=Path(os.getenv("UPLOAD_DIR", "uploads")).expanduser(),
        output_dir=Path(os.getenv("OUTPUT_DIR", "outputs")).expanduser(),
        max_upload_bytes=int(os.getenv("MAX_UPLOAD_BYTES", str(10 * 1024 * 1024))),
        log_level=os.getenv("LOG_LEVEL", default_level).upper(),
        log_dir=Path(log_dir).expanduser() if log_dir else None,
    )
