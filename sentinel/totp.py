"""TOTP code generation for identities.

Uses pyotp (RFC 6238: 6 digits, SHA-1, 30 second period by default).
"""

from __future__ import annotations

import binascii
import logging
import time
from typing import Protocol

import pyotp

logger = logging.getLogger(__name__)

FALLBACK_CODE = "000000"


class CodeGenerator(Protocol):
    async def generate(self, secret: str) -> str: ...

    def remaining(self) -> int: ...


class TotpGenerator:
    """Default generation service."""

    def __init__(self, period: int = 30, digits: int = 6) -> None:
        self.period = period
        self.digits = digits

    async def generate(self, secret: str) -> str:
        """Current code for ``secret``; an undecodable secret yields FALLBACK_CODE."""
        try:
            return pyotp.TOTP(secret, digits=self.digits, interval=self.period).now()
        except (binascii.Error, ValueError, TypeError) as e:
            logger.warning("TOTP generation failed: %s", e)
            return FALLBACK_CODE

    def remaining(self) -> int:
        """Seconds until the current code window rolls over."""
        return self.period - int(time.time()) % self.period
