"""Core data models for CEF decoding and filtering."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure kinds reported by the decoder and the applier."""

    MALFORMED_HEADER = "malformed_header"
    TIMESTAMP_COERCION_FAILURE = "timestamp_coercion_failure"
    TARGET_TYPE_MISMATCH = "target_type_mismatch"


class ApplyState(str, Enum):
    """Terminal states of a single filter invocation."""

    APPLIED = "applied"
    TARGET_MISMATCH = "target_mismatch"
    DECODE_FAILED = "decode_failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class CefRecord:
    """Decoded CEF header and extension fields."""

    version: str
    vendor: str
    product: str
    device_version: str
    signature_id: str
    name: str
    severity: str
    syslog_prefix: str | None = None
    extensions: Mapping[str, str] | None = None  # None when the line has no key=value pairs

    def as_dict(self) -> dict[str, Any]:
        """Render the record as the structure placed on events."""
        out: dict[str, Any] = {
            "cef_version": self.version,
            "cef_vendor": self.vendor,
            "cef_product": self.product,
            "cef_device_version": self.device_version,
            "cef_sigid": self.signature_id,
            "cef_name": self.name,
            "cef_severity": self.severity,
        }
        if self.syslog_prefix is not None:
            out["cef_syslog"] = self.syslog_prefix
        if self.extensions is not None:
            out["cef_ext"] = dict(self.extensions)
        return out


@dataclass(frozen=True, slots=True)
class DecodeFailure:
    kind: ErrorKind
    message: str


@dataclass(frozen=True, slots=True)
class DecodeResult:
    """Either a decoded record or the reason decoding failed."""

    record: CefRecord | None = None
    failure: DecodeFailure | None = None

    @property
    def ok(self) -> bool:
        return self.record is not None


@dataclass(frozen=True, slots=True)
class FilterOutcome:
    """Result of running the filter against one event."""

    state: ApplyState
    failure: DecodeFailure | None = None

    @property
    def matched(self) -> bool:
        return self.state is ApplyState.APPLIED
