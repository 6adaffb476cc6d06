"""Wire model for the boot orchestrator's extension request."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from urllib.parse import parse_qs, urlencode

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

REDACTED_QUERY_KEYS = frozenset({"p"})


class ExtensionEnvelope(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    hostname: str = Field(min_length=1)
    ipv4_address: str = ""
    ipv6_address: str = ""
    last_boot: datetime
    raw_query: str = Field(default="", alias="rawquery")

    @field_validator("hostname")
    @classmethod
    def _normalize_hostname(cls, value: str) -> str:
        normalized = value.strip()
        if not normalized:
            raise ValueError("hostname cannot be blank")
        return normalized

    @field_validator("last_boot")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    def audit_record(self) -> dict[str, object]:
        """Return the envelope as logged, with secret query values masked."""
        record = self.model_dump(mode="json", by_alias=True)
        record["rawquery"] = _redact_query(self.raw_query)
        return {"v1": record}


class ExtensionRequest(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    v1: ExtensionEnvelope | None = None


class EnvelopeDecodeError(ValueError):
    """Raised when a request body is not a usable extension request."""


def decode_envelope(body: bytes) -> ExtensionEnvelope:
    try:
        request = ExtensionRequest.model_validate_json(body)
    except ValidationError as exc:
        raise EnvelopeDecodeError(f"invalid extension request: {exc.error_count()} error(s)") from exc
    if request.v1 is None:
        raise EnvelopeDecodeError("extension request has no v1 payload")
    return request.v1


def encode_envelope(envelope: ExtensionEnvelope) -> str:
    return json.dumps(
        {"v1": envelope.model_dump(mode="json", by_alias=True)},
        separators=(",", ":"),
    )


def _redact_query(raw_query: str) -> str:
    if not raw_query:
        return raw_query
    parsed = parse_qs(raw_query, keep_blank_values=True)
    masked = [
        (key, "REDACTED" if key in REDACTED_QUERY_KEYS else value)
        for key, values in parsed.items()
        for value in values
    ]
    return urlencode(masked)
