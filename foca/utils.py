"""Utility functions."""

import re
from urllib.parse import urlparse


def validate_email(email: str) -> bool:
    """Validate email format."""
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    return bool(re.match(pattern, email))


def validate_url(url: str) -> bool:
    """Accept absolute http(s) URLs with a host."""
    if not isinstance(url, str) or not url:
        return False
    parsed = urlparse(url)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def mask_secret(value: str | None, visible: int = 4) -> str:
    """Mask an API key, keeping only its last few characters."""
    if not value:
        return ""
    if len(value) <= visible * 2:
        return "*" * len(value)
    return f"{'*' * 8}{value[-visible:]}"
