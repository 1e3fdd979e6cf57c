"""Application configuration and session state management."""

import os
from dataclasses import dataclass, field
from typing import Any, Dict, FrozenSet, Optional, Tuple

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()


MIB = 1024 * 1024

DEFAULT_API_BASE_URL = "http://localhost:5000"
DEFAULT_CHUNK_SIZE_BYTES = int(3.5 * MIB)
DEFAULT_SINGLE_SHOT_THRESHOLD_BYTES = 4 * MIB

# Tried in this order after the ignore-encryption strategy fails.
DEFAULT_CANDIDATE_PASSWORDS: Tuple[str, ...] = (
    "",
    "1234",
    "12345",
    "123456",
    "0000",
    "senha",
    "password",
    "admin",
)

DEFAULT_ALLOWED_PART_COUNTS: FrozenSet[int] = frozenset({2, 3, 4, 5, 6, 8, 10})


@dataclass(frozen=True)
class AppConfig:
    api_base_url: str = DEFAULT_API_BASE_URL
    chunk_size_bytes: int = DEFAULT_CHUNK_SIZE_BYTES
    single_shot_threshold_bytes: int = DEFAULT_SINGLE_SHOT_THRESHOLD_BYTES
    candidate_passwords: Tuple[str, ...] = DEFAULT_CANDIDATE_PASSWORDS
    allowed_part_counts: FrozenSet[int] = field(default=DEFAULT_ALLOWED_PART_COUNTS)
    request_timeout_s: float = 120.0
    verify_tls: bool = True
    max_workers: int = 1

    def __post_init__(self) -> None:
        if self.chunk_size_bytes <= 0:
            raise ValueError("chunk_size_bytes must be positive")
        if self.single_shot_threshold_bytes < 0:
            raise ValueError("single_shot_threshold_bytes must not be negative")
        if self.max_workers < 1:
            raise ValueError("max_workers must be at least 1")
        if not self.allowed_part_counts or min(self.allowed_part_counts) < 1:
            raise ValueError("allowed_part_counts must contain positive integers")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return int(float(raw.strip()))
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        return float(raw.strip())
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() not in {'0', 'false', 'no'}


def _env_passwords(name: str) -> Tuple[str, ...]:
    raw = os.getenv(name)
    if raw is None:
        return DEFAULT_CANDIDATE_PASSWORDS
    # The empty password is always tried first, even if the list omits it.
    items = [p.strip() for p in raw.split(',')]
    ordered = [""] + [p for p in items if p]
    return tuple(dict.fromkeys(ordered))


def _env_part_counts(name: str) -> FrozenSet[int]:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return DEFAULT_ALLOWED_PART_COUNTS
    try:
        return frozenset(int(p) for p in raw.split(',') if p.strip())
    except ValueError:
        raise ValueError(f"{name} must be a comma-separated list of integers, got {raw!r}") from None


def load_config() -> AppConfig:
    """Build a validated AppConfig from the environment (and .env file)."""
    return AppConfig(
        api_base_url=os.getenv('LAB_API_BASE_URL', DEFAULT_API_BASE_URL),
        chunk_size_bytes=_env_int('LAB_CHUNK_SIZE_BYTES', DEFAULT_CHUNK_SIZE_BYTES),
        single_shot_threshold_bytes=_env_int(
            'LAB_SINGLE_SHOT_THRESHOLD_BYTES', DEFAULT_SINGLE_SHOT_THRESHOLD_BYTES
        ),
        candidate_passwords=_env_passwords('LAB_CANDIDATE_PASSWORDS'),
        allowed_part_counts=_env_part_counts('LAB_ALLOWED_PART_COUNTS'),
        request_timeout_s=_env_float('LAB_REQUEST_TIMEOUT_S', 120.0),
        verify_tls=_env_bool('LAB_API_VERIFY_TLS', True),
        max_workers=_env_int('LAB_MAX_WORKERS', 1),
    )


def get_session_state_defaults(cfg: Optional[AppConfig] = None) -> Dict[str, Any]:
    """Return default values for all session state variables."""
    cfg = cfg or load_config()
    return {
        # Configuration
        'config': cfg,
        'api_base_url': cfg.api_base_url,

        # Upload tab
        'upload_report': None,
        'patient_name': None,

        # Split tab
        'split_report': None,
        'part_count': min(cfg.allowed_part_counts),
    }


def initialize_session_state() -> None:
    """Initialize all session state variables with default values."""
    import streamlit as st

    defaults = get_session_state_defaults()

    for key, value in defaults.items():
        if key not in st.session_state:
            st.session_state[key] = value
