"""Logging utilities for upload and split tracking."""

import logging
import os


LOGGER_NAME = "lab_uploader"


def get_logger() -> logging.Logger:
    """Get or create the application logger."""
    logger = logging.getLogger(LOGGER_NAME)
    if logger.handlers:
        return logger

    logger.setLevel(logging.INFO)
    log_path = os.path.join(os.getcwd(), f"{LOGGER_NAME}.log")

    fmt = logging.Formatter("%(asctime)s %(levelname)s %(message)s")
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(fmt)
    logger.addHandler(file_handler)

    # Also emit to console (shows up in Streamlit logs)
    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(fmt)
    logger.addHandler(stream_handler)

    return logger


def describe_size(num_bytes: int) -> str:
    """Return a short human-readable size for log lines (e.g. '3.50 MB')."""
    if num_bytes < 1024:
        return f"{num_bytes} B"
    if num_bytes < 1024 * 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes / (1024 * 1024):.2f} MB"


def mask_password(password: str) -> str:
    """Return a safe representation of a candidate password (never the full value)."""
    if not isinstance(password, str) or not password:
        return "<empty>"
    return f"len={len(password)} head={password[0]}***"
