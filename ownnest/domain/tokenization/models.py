"""Domain models for tokenization jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from ownnest.db.models import generate_uuid
from ownnest.domain.designs import DesignRecord

from .errors import ErrorKind


class JobStatus(str, Enum):
    PERSISTING = "persisting"
    BUILDING = "building"
    SUBMITTING = "submitting"
    TOKENIZED = "tokenized"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.TOKENIZED, JobStatus.FAILED)


@dataclass(frozen=True, slots=True)
class LedgerAccountHandle:
    address: str
    program_id: str


@dataclass(frozen=True, slots=True)
class JobError:
    kind: ErrorKind
    message: str


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(slots=True)
class TokenizationJob:
    owner_id: str
    status: JobStatus = JobStatus.PERSISTING
    designs: tuple[DesignRecord, ...] = ()
    account: Optional[LedgerAccountHandle] = None
    signature: Optional[str] = None
    error: Optional[JobError] = None
    attempts: int = 0
    submission_started: bool = False
    payload_sha256: Optional[str] = None
    design_count: int = 0
    id: str = field(default_factory=generate_uuid)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def snapshot(self, designs: tuple[DesignRecord, ...]) -> None:
        if self.designs:
            raise RuntimeError(f"job {self.id} already holds a design snapshot")
        self.designs = tuple(designs)
        self.design_count = len(self.designs)

    def transition(self, status: JobStatus) -> None:
        if self.is_terminal:
            raise RuntimeError(f"job {self.id} is already {self.status.value}")
        self.status = status
        self.updated_at = _utcnow()

    def fail(self, kind: ErrorKind, message: str) -> None:
        self.error = JobError(kind=kind, message=message)
        self.transition(JobStatus.FAILED)

    @classmethod
    def rejected(cls, owner_id: str, kind: ErrorKind, message: str) -> "TokenizationJob":
        """A job that failed admission and was never registered."""
        job = cls(owner_id=owner_id)
        job.fail(kind, message)
        return job


__all__ = ["JobError", "JobStatus", "LedgerAccountHandle", "TokenizationJob"]
