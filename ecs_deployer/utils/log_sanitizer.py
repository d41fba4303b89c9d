"""
Log sanitization helpers.

Upstream error text and webhook URLs end up in CI logs, which are often
public. Strip control characters and never print webhook secrets.
"""

import re
from typing import Any
from urllib.parse import urlsplit


def sanitize_for_log(value: Any, max_length: int = 200) -> str:
    """
    Make a value safe to embed in a single log line.

    Control characters are removed so that upstream text cannot inject
    workflow commands (``::set-output``) or fake log lines.

    Args:
        value: The value to sanitize
        max_length: Maximum length of the output

    Returns:
        Sanitized string
    """
    sanitized = re.sub(r"[\x00-\x1f\x7f-\x9f]", "", str(value))
    if len(sanitized) > max_length:
        sanitized = sanitized[:max_length] + "..."
    return sanitized


def redact_url(url: str) -> str:
    """
    Keep only scheme and host of a URL.

    Slack webhook URLs carry their secret in the path.
    """
    parts = urlsplit(url or "")
    if not parts.scheme or not parts.netloc:
        return "<redacted>"
    return f"{parts.scheme}://{parts.netloc}/..."
