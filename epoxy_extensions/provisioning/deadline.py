"""Per-request deadlines for blocking provisioning calls."""

from __future__ import annotations

import time
from collections.abc import Callable
from dataclasses import dataclass

from epoxy_extensions.provisioning.errors import ProvisioningTimeoutError

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class Deadline:
    expires_at: float
    clock: Clock = time.monotonic

    @classmethod
    def after(cls, seconds: float, *, clock: Clock = time.monotonic) -> Deadline:
        return cls(expires_at=clock() + seconds, clock=clock)

    def remaining(self, *, operation: str, cap: float | None = None) -> float:
        """Return seconds left, capped, or raise once the deadline has passed."""
        left = self.expires_at - self.clock()
        if left <= 0:
            raise ProvisioningTimeoutError(f"deadline exceeded before {operation}")
        if cap is not None:
            return min(left, cap)
        return left
