"""Small predicates shared by mappers and the orchestrator."""

from typing import Any
from urllib.parse import urlparse


def has_text(value: Any) -> bool:
    """True for a string with at least one non-whitespace character."""
    return isinstance(value, str) and bool(value.strip())


def is_valid_url(value: Any) -> bool:
    """True for an absolute http(s) URL with a host."""
    if not has_text(value):
        return False
    try:
        parsed = urlparse(value)
    except ValueError:
        return False
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)
