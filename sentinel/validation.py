"""
Identity validation — secret normalization and draft input rules.

All identity creation passes through validation before write. Imported
records skip these rules; they are only sanitized (see sentinel.models).

Usage:
    from sentinel.validation import normalize_secret, validate_draft

    valid, reason = validate_draft("GitHub", "jbsw y3dp ehpk 3pxp")
"""

from __future__ import annotations

import re

BASE32_PATTERN = re.compile(r"^[A-Z2-7]+=*$")

_WHITESPACE = re.compile(r"\s")


def normalize_secret(secret: str) -> str:
    """Strip all whitespace and uppercase a base32 secret."""
    return _WHITESPACE.sub("", secret).upper()


def is_base32(secret: str) -> bool:
    """Check a normalized secret against the base32 alphabet (A-Z, 2-7, '=' padding)."""
    return bool(BASE32_PATTERN.match(secret))


def validate_draft(name: str, secret: str) -> tuple[bool, str]:
    """Validate the name and secret of a new identity.

    Returns:
        (is_valid, reason) tuple. ``reason`` names the offending field on failure.
    """
    if not name or not name.strip():
        return False, "name"
    if not secret:
        return False, "secret"
    if not is_base32(normalize_secret(secret)):
        return False, "secret"
    return True, "ok"
