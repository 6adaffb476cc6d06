"""Admission checks applied to every extension request."""

from __future__ import annotations

from collections.abc import Callable
from datetime import UTC, datetime, timedelta

import structlog

from epoxy_extensions.extension.envelope import (
    EnvelopeDecodeError,
    ExtensionEnvelope,
    decode_envelope,
)
from epoxy_extensions.extension.errors import (
    BadRequestError,
    MethodNotAllowedError,
    RequestTimeoutError,
)

DEFAULT_FRESHNESS_WINDOW = timedelta(minutes=120)

type WallClock = Callable[[], datetime]

logger = structlog.get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


class RequestGate:
    """Decodes extension requests and rejects stale or malformed ones.

    A machine whose reported boot is older than the freshness window is
    refused: the orchestrator's claim about that boot is no longer trusted.
    Rejections are terminal; the machine has to go through a new boot report.
    """

    def __init__(
        self,
        *,
        freshness_window: timedelta = DEFAULT_FRESHNESS_WINDOW,
        clock: WallClock = _utc_now,
    ) -> None:
        self._freshness_window = freshness_window
        self._clock = clock

    @property
    def freshness_window(self) -> timedelta:
        return self._freshness_window

    def admit(
        self,
        method: str,
        body: bytes,
        *,
        now: datetime | None = None,
    ) -> ExtensionEnvelope:
        if method.upper() != "POST":
            raise MethodNotAllowedError(f"method {method} not allowed; extension requests are POST")

        try:
            envelope = decode_envelope(body)
        except EnvelopeDecodeError as exc:
            raise BadRequestError(str(exc)) from exc

        current = now if now is not None else self._clock()
        elapsed = current - envelope.last_boot
        if elapsed > self._freshness_window:
            raise RequestTimeoutError(
                f"last boot of {envelope.hostname} was {elapsed} ago; "
                f"freshness window is {self._freshness_window}"
            )

        logger.info("extension_request_admitted", request=envelope.audit_record())
        return envelope
