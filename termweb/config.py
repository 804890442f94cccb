"""Centralised settings for the termweb browser.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Image downloads
    # ------------------------------------------------------------------
    download_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("TERMWEB_DOWNLOAD_DIR", "downloads"))
    )

    # ------------------------------------------------------------------
    # Fetching
    # ------------------------------------------------------------------
    default_scheme: str = field(
        default_factory=lambda: os.environ.get("TERMWEB_DEFAULT_SCHEME", "https")
    )
    request_timeout: float = field(
        default_factory=lambda: float(os.environ.get("REQUEST_TIMEOUT", "30.0"))
    )
    user_agent: str = field(
        default_factory=lambda: os.environ.get(
            "TERMWEB_USER_AGENT", "Mozilla/5.0 (compatible; termweb/1.0; text-mode browser)"
        )
    )
    max_workers: int = field(
        default_factory=lambda: int(os.environ.get("TERMWEB_MAX_WORKERS", "4"))
    )

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------
    ascii_width: int = field(
        default_factory=lambda: int(os.environ.get("ASCII_WIDTH", "80"))
    )
    word_wrap: bool = field(
        default_factory=lambda: _env_flag("TERMWEB_WORD_WRAP", "true")
    )

    # ------------------------------------------------------------------
    # Logging (the interactive view owns the terminal, so logs go to a file)
    # ------------------------------------------------------------------
    log_file: Path = field(
        default_factory=lambda: Path(os.environ.get("TERMWEB_LOG_FILE", "termweb.log"))
    )
    log_level: str = field(
        default_factory=lambda: os.environ.get("TERMWEB_LOG_LEVEL", "WARNING").upper()
    )


# Module-level singleton, import this everywhere:
#   from termweb.config import settings
settings = Settings()
