"""Redaction-aware loguru setup.

Every credential registered here is masked in log messages and string
``extra`` values before any sink sees the record.
"""

import sys
from typing import Any, Iterable, Optional, Sequence

from loguru import logger

REDACTED = "[REDACTED]"
LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan> - <level>{message}</level>"
)

_secrets: set[str] = set()


def register_secret(value: Optional[str]) -> None:
    """Mask ``value`` in every subsequent log record."""
    if value:
        _secrets.add(value)


def clear_secrets() -> None:
    _secrets.clear()


def redact(text: str) -> str:
    """Replace every registered secret in ``text``."""
    # Longest first so a secret that contains another is masked whole
    for secret in sorted(_secrets, key=len, reverse=True):
        if secret in text:
            text = text.replace(secret, REDACTED)
    return text


def describe_secret(value: Optional[str], prefixes: Sequence[str] = ()) -> str:
    """Return non-identifying shape metadata for a credential."""
    if not value:
        return "length=0"
    parts = [f"length={len(value)}"]
    if prefixes:
        parts.append(f"prefix_ok={value.startswith(tuple(prefixes))}")
    parts.append(f"whitespace={any(char.isspace() for char in value)}")
    return " ".join(parts)


def _redact_record(record: dict) -> None:
    record["message"] = redact(record["message"])
    for key, value in record["extra"].items():
        if isinstance(value, str):
            record["extra"][key] = redact(value)


def configure_logging(
    level: str = "INFO",
    secrets: Iterable[str] = (),
    sink: Any = None,
) -> None:
    """Install a single redacting sink on the global loguru logger.

    Parameters
    ----------
    level : str
        Minimum level for the sink.
    secrets : Iterable[str]
        Credential values to mask.
    sink : Any, optional
        Any loguru sink; defaults to stderr.
    """
    for secret in secrets:
        register_secret(secret)

    logger.remove()
    logger.configure(patcher=_redact_record)
    if sink is None:
        logger.add(sys.stderr, level=level.upper(), format=LOG_FORMAT)
    else:
        logger.add(sink, level=level.upper(), format="{level} | {message}")
