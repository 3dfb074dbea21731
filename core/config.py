"""Paper reconciliation configuration and environment setup.

This module provides centralized configuration for the reconciliation
pipeline, including development mode detection, LangSmith tracing setup and
the AppConfig value that is built once at startup and passed down to every
component that needs it.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_BASE_URL = "https://tps-tiku-api.staff.xdf.cn"


def is_dev_mode() -> bool:
    """Check if running in development mode.

    Returns:
        True if RECONCILE_MODE is set to 'dev', False otherwise.
    """
    return os.getenv("RECONCILE_MODE", "prod").lower() == "dev"


def configure_langsmith() -> None:
    """Configure LangSmith tracing based on RECONCILE_MODE.

    When RECONCILE_MODE=dev:
        - Enables LangSmith tracing
        - Sets project to 'paper-reconcile-dev'

    When RECONCILE_MODE=prod (or unset):
        - Disables LangSmith tracing

    This function is idempotent and safe to call multiple times.
    """
    if is_dev_mode():
        os.environ.setdefault("LANGSMITH_TRACING", "true")
        os.environ.setdefault("LANGSMITH_PROJECT", "paper-reconcile-dev")
    else:
        os.environ["LANGSMITH_TRACING"] = "false"


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


@dataclass
class AppConfig:
    """Configuration for a reconciliation run.

    Environment Variables:
        RECONCILE_API_BASE_URL: Question bank API root
        RECONCILE_BANK_TOKEN: Value of the tikutoken header
        RECONCILE_COOKIES: Comma-separated session cookies, rotated per request
        RECONCILE_UPLOAD_URL: Screenshot upload endpoint (default: {base}/attachment/upload)
        RECONCILE_PAPERS_DIR: Directory of pending paper sources (default: output_toml)
        RECONCILE_AUDIT_FILE: JSON-lines audit file (default: logs/output.json)
        RECONCILE_PROGRESS_FILE: Progress snapshot file (default: process.txt)
        RECONCILE_LOG_DIR: Directory for per-module log files (default: logs)
        RECONCILE_STAGE: Stage code sent with every search (default: 3)
        RECONCILE_MAX_CONCURRENT_PAPERS: Fleet-level bound (default: 30)
        RECONCILE_MAX_CONCURRENT_QUESTIONS: Per-paper bound (default: 50)
        RECONCILE_QUESTION_STAGGER_SECONDS: Delay between question starts (default: 0.5)
        RECONCILE_MAX_RESOLUTION_RETRIES: Extra attempts per question (default: 10)
        RECONCILE_RESOLUTION_RETRY_DELAY: Pause after an infrastructure failure (default: 1.0)
        RECONCILE_RETAIN_IMPERFECT_SOURCES: Keep imperfect sources on disk (default: false)
        RECONCILE_HTTP_TIMEOUT: Request timeout in seconds (default: 30)
        RECONCILE_JUDGE_MODEL: Override for the judge model id
    """

    api_base_url: str = field(
        default_factory=lambda: os.environ.get(
            "RECONCILE_API_BASE_URL", DEFAULT_API_BASE_URL
        ).rstrip("/")
    )
    bank_token: str = field(
        default_factory=lambda: os.environ.get("RECONCILE_BANK_TOKEN", "")
    )
    cookies: list[str] = field(default_factory=lambda: _env_list("RECONCILE_COOKIES"))
    upload_url: str | None = field(
        default_factory=lambda: os.environ.get("RECONCILE_UPLOAD_URL")
    )
    papers_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("RECONCILE_PAPERS_DIR", "output_toml"))
    )
    audit_file: Path = field(
        default_factory=lambda: Path(
            os.environ.get("RECONCILE_AUDIT_FILE", "logs/output.json")
        )
    )
    progress_file: Path = field(
        default_factory=lambda: Path(os.environ.get("RECONCILE_PROGRESS_FILE", "process.txt"))
    )
    log_dir: Path = field(
        default_factory=lambda: Path(os.environ.get("RECONCILE_LOG_DIR", "logs"))
    )
    stage: str = field(default_factory=lambda: os.environ.get("RECONCILE_STAGE", "3"))
    max_concurrent_papers: int = field(
        default_factory=lambda: int(os.environ.get("RECONCILE_MAX_CONCURRENT_PAPERS", "30"))
    )
    max_concurrent_questions: int = field(
        default_factory=lambda: int(
            os.environ.get("RECONCILE_MAX_CONCURRENT_QUESTIONS", "50")
        )
    )
    question_stagger_seconds: float = field(
        default_factory=lambda: float(
            os.environ.get("RECONCILE_QUESTION_STAGGER_SECONDS", "0.5")
        )
    )
    max_resolution_retries: int = field(
        default_factory=lambda: int(os.environ.get("RECONCILE_MAX_RESOLUTION_RETRIES", "10"))
    )
    resolution_retry_delay: float = field(
        default_factory=lambda: float(
            os.environ.get("RECONCILE_RESOLUTION_RETRY_DELAY", "1.0")
        )
    )
    retain_imperfect_sources: bool = field(
        default_factory=lambda: _env_bool("RECONCILE_RETAIN_IMPERFECT_SOURCES")
    )
    http_timeout: float = field(
        default_factory=lambda: float(os.environ.get("RECONCILE_HTTP_TIMEOUT", "30"))
    )
    judge_model: str | None = field(
        default_factory=lambda: os.environ.get("RECONCILE_JUDGE_MODEL")
    )

    def __post_init__(self) -> None:
        if self.max_concurrent_papers < 1:
            raise ValueError("max_concurrent_papers must be at least 1")
        if self.max_concurrent_questions < 1:
            raise ValueError("max_concurrent_questions must be at least 1")
        if self.max_resolution_retries < 0:
            raise ValueError("max_resolution_retries cannot be negative")
        if self.question_stagger_seconds < 0:
            raise ValueError("question_stagger_seconds cannot be negative")
        if self.resolution_retry_delay < 0:
            raise ValueError("resolution_retry_delay cannot be negative")

    @property
    def resolved_upload_url(self) -> str:
        """Upload endpoint, defaulting to the bank's attachment route."""
        return self.upload_url or f"{self.api_base_url}/attachment/upload"

    @property
    def has_credentials(self) -> bool:
        """Check if the bank token is configured."""
        return bool(self.bank_token)


def load_config(**overrides) -> AppConfig:
    """Build an AppConfig from the environment, with explicit overrides.

    Args:
        **overrides: Field values that take precedence over the environment
            (e.g. CLI flags)

    Returns:
        A fresh AppConfig; no module-level instance is kept.
    """
    return AppConfig(**{k: v for k, v in overrides.items() if v is not None})
