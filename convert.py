"""
Lenient conversions for record values.
"""
import json
import logging
from typing import Any, List

logger = logging.getLogger(__name__)


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None or value == "":
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def to_int(value: Any, default: int = 0) -> int:
    if value is None or value == "":
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        pass
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return default


def split_lines(value: Any) -> List[str]:
    """Newline-delimited text to a list, dropping blank entries."""
    if not value:
        return []
    return [item.strip() for item in str(value).split("\n") if item.strip()]


def load_json(value: Any, default: Any) -> Any:
    if not value:
        return default
    if not isinstance(value, str):
        return value
    try:
        return json.loads(value)
    except ValueError:
        logger.warning("Ignoring malformed JSON value: %.80s", value)
        return default


def lookup_id(value: Any) -> Any:
    """Lookup fields may come back as {"Id": ..., "Name": ...}; keep the id."""
    if isinstance(value, dict):
        return value.get("Id")
    return value
