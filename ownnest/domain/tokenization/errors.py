"""Tagged error kinds for the tokenization pipeline and their classification."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    CONFLICT = "Conflict"
    NO_DESIGNS = "NoDesigns"
    VALIDATION = "ValidationError"
    PAYLOAD_TOO_LARGE = "PayloadTooLarge"
    SIZING = "SizingError"
    REJECTED = "Rejected"
    TIMED_OUT = "TimedOut"
    INDETERMINATE = "Indeterminate"
    TRANSPORT = "TransportError"
    CANCELLED = "Cancelled"


class Disposition(str, Enum):
    RETRY = "retry"
    TERMINAL = "terminal"
    CHECK_LANDED = "check_landed"


_DISPOSITIONS = {
    ErrorKind.CONFLICT: Disposition.TERMINAL,
    ErrorKind.NO_DESIGNS: Disposition.TERMINAL,
    ErrorKind.VALIDATION: Disposition.TERMINAL,
    ErrorKind.PAYLOAD_TOO_LARGE: Disposition.TERMINAL,
    ErrorKind.SIZING: Disposition.RETRY,
    ErrorKind.REJECTED: Disposition.TERMINAL,
    ErrorKind.TIMED_OUT: Disposition.CHECK_LANDED,
    ErrorKind.INDETERMINATE: Disposition.TERMINAL,
    ErrorKind.TRANSPORT: Disposition.RETRY,
    ErrorKind.CANCELLED: Disposition.TERMINAL,
}


def classify(kind: ErrorKind) -> Disposition:
    return _DISPOSITIONS[kind]


@dataclass(eq=False)
class TokenizationError(Exception):
    """Single error type raised by every pipeline step."""

    kind: ErrorKind
    reason: str
    details: Any | None = None

    def __str__(self) -> str:
        return f"{self.kind.value}: {self.reason}"

    @property
    def disposition(self) -> Disposition:
        return classify(self.kind)

    @property
    def retryable(self) -> bool:
        # A timeout becomes retryable only once the landed check has proven the
        # transaction can no longer land; that result is re-raised with
        # details["expired"] set.
        if self.kind is ErrorKind.TIMED_OUT:
            return bool(isinstance(self.details, dict) and self.details.get("expired"))
        return self.disposition is Disposition.RETRY


__all__ = ["Disposition", "ErrorKind", "TokenizationError", "classify"]
