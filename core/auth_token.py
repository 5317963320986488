"""
Time-based one-time codes for the primary provider's x-auth-token header.

The provider checks codes against its own clock. When ours drifts, the
code for the "current" window can be rejected while a neighbouring window
is accepted, so callers may ask for a code shifted by whole steps.
"""

from __future__ import annotations

import time
from typing import Callable, Optional

import pyotp

from core.constants import TOTP_DIGITS, TOTP_STEP_SECONDS


class TokenGenerator:
    """Generates TOTP codes (RFC 6238, SHA-1) with an epoch shift."""

    def __init__(
        self,
        step: int = TOTP_STEP_SECONDS,
        digits: int = TOTP_DIGITS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.step = step
        self.digits = digits
        self._clock = clock

    def generate(self, secret: str, epoch_shift: int = 0, *, at: Optional[float] = None) -> str:
        """
        Return the code for the window ``epoch_shift`` steps away from now.

        Args:
            secret: Base32 shared secret.
            epoch_shift: 0 = current window, -1 = previous, +1 = next.
            at: Unix time to use instead of the clock.
        """
        totp = pyotp.TOTP(secret, digits=self.digits, interval=self.step)
        for_time = self._clock() if at is None else at
        return totp.at(int(for_time), counter_offset=epoch_shift)


def is_valid_secret(secret: str) -> bool:
    """True when ``secret`` decodes as base32 and can produce codes."""
    if not secret:
        return False
    try:
        pyotp.TOTP(secret).byte_secret()
    except (TypeError, ValueError):
        return False
    return True
