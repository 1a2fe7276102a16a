"""Environment-driven settings and logging setup."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from docpreview.domain import ConcurrencyPolicy

CONFIG_DIR = Path(__file__).resolve().parent.parent / "config"
DEFAULT_LAYOUT_PATH = CONFIG_DIR / "preview_layout.yaml"
DEFAULT_SERVICE_URL = "http://127.0.0.1:8000"
DEFAULT_TIMEOUT = 30.0
DEFAULT_CORS_ORIGINS = ("http://localhost:3000", "http://127.0.0.1:3000")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = float(raw)
    except ValueError as exc:
        raise ValueError(f"{name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ValueError(f"{name} must be positive, got {raw!r}")
    return value


def _env_policy(name: str, default: ConcurrencyPolicy) -> ConcurrencyPolicy:
    raw = (os.getenv(name) or "").strip().lower()
    if not raw:
        return default
    try:
        return ConcurrencyPolicy(raw)
    except ValueError as exc:
        choices = ", ".join(policy.value for policy in ConcurrencyPolicy)
        raise ValueError(f"{name} must be one of {choices}, got {raw!r}") from exc


@dataclass(frozen=True, slots=True)
class Settings:
    service_url: str = DEFAULT_SERVICE_URL
    service_token: str | None = None
    timeout: float = DEFAULT_TIMEOUT
    concurrency_policy: ConcurrencyPolicy = ConcurrencyPolicy.REJECT
    layout_path: Path = DEFAULT_LAYOUT_PATH
    cors_origins: tuple[str, ...] = field(default=DEFAULT_CORS_ORIGINS)
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        origins_env = os.getenv("API_CORS_ORIGINS", "")
        origins = tuple(origin.strip() for origin in origins_env.split(",") if origin.strip())
        layout_env = os.getenv("PREVIEW_LAYOUT_PATH")
        return cls(
            service_url=(os.getenv("PREVIEW_SERVICE_URL") or DEFAULT_SERVICE_URL).rstrip("/"),
            service_token=os.getenv("PREVIEW_SERVICE_TOKEN") or None,
            timeout=_env_float("PREVIEW_TIMEOUT_SECONDS", DEFAULT_TIMEOUT),
            concurrency_policy=_env_policy("PREVIEW_CONCURRENCY_POLICY", ConcurrencyPolicy.REJECT),
            layout_path=Path(layout_env).expanduser() if layout_env else DEFAULT_LAYOUT_PATH,
            cors_origins=origins or DEFAULT_CORS_ORIGINS,
            log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        )


def configure_logging(level: str = "INFO") -> None:
    """Install a basic root handler once; later calls only adjust the level."""

    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(format=LOG_FORMAT)
    root.setLevel(level)


__all__ = ["Settings", "configure_logging", "CONFIG_DIR", "DEFAULT_LAYOUT_PATH"]
