"""Utility helpers for kinfold."""

from __future__ import annotations

import logging
from datetime import date
from typing import Any, Dict, Optional

from rich.console import Console
from rich.logging import RichHandler

LOGGER_NAME = "kinfold"


def get_logger() -> logging.Logger:
    """Return a module-level logger configured with rich if not already."""
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = RichHandler(rich_tracebacks=True, show_path=False)
        handler.setFormatter(logging.Formatter("%(message)s"))
        logger.setLevel(logging.INFO)
        logger.addHandler(handler)
    return logger


logger = get_logger()


def set_log_level(level: str) -> None:
    """Allow callers (e.g. CLI) to adjust logging verbosity at runtime."""

    level_value = getattr(logging, level.upper(), logging.INFO)
    logger.setLevel(level_value)


console = Console()


def full_name(last_name: str, first_name: str) -> str:
    return f"{last_name} {first_name}".strip()


def parse_date(value: Optional[str]) -> Optional[date]:
    """Calendar date from an ISO date or timestamp string, else ``None``."""
    if not value:
        return None
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        logger.debug("Unparsable date %r", value)
        return None


def calculate_age(
    birth_date: Optional[str],
    end_date: Optional[str] = None,
    today: Optional[date] = None,
) -> Optional[int]:
    """Whole years from ``birth_date`` to ``end_date`` (or today).

    A birthday not yet reached in the end year does not count. ``None`` when
    the birth date is missing or unreadable.
    """

    birth = parse_date(birth_date)
    if birth is None:
        return None
    end = parse_date(end_date) or today or date.today()
    age = end.year - birth.year
    if (end.month, end.day) < (birth.month, birth.day):
        age -= 1
    return age


def merge_dicts(base: Dict[str, Any], override: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    result = base.copy()
    if override:
        result.update({k: v for k, v in override.items() if v is not None})
    return result
