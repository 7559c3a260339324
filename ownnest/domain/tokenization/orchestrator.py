"""Tokenization orchestrator.

Runs one asyncio task per job through Persisting -> Building -> Submitting and
ends every job in Tokenized or Failed. Nothing raised inside a job escapes
this module; callers read the outcome from the job itself.
"""

from __future__ import annotations

import asyncio
import hashlib
import logging
from typing import Any, Awaitable, Callable, TypeVar

import httpx
from sqlalchemy.exc import DBAPIError
from tenacity import AsyncRetrying, RetryCallState, retry_if_exception, wait_exponential, wait_random

from ownnest.domain.designs import DesignGateway, DesignRecord, DesignValidationError
from ownnest.infrastructure.ledger.keys import Keypair

from .builder import TransactionBuilder
from .errors import ErrorKind, TokenizationError
from .journal import TokenizationJournal
from .models import JobError, JobStatus, TokenizationJob
from .serializer import serialize
from .submission import LandedStatus, SubmissionClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CANCELLABLE = (JobStatus.PERSISTING, JobStatus.BUILDING)


class JobNotFoundError(LookupError):
    """Raised when an owner has never had a tokenization job."""

    def __init__(self, owner_id: str) -> None:
        super().__init__(f"no tokenization job for owner {owner_id!r}")
        self.owner_id = owner_id


def _is_retryable(exc: BaseException) -> bool:
    return isinstance(exc, TokenizationError) and exc.retryable


class TokenizationOrchestrator:
    def __init__(
        self,
        gateway: DesignGateway,
        builder: TransactionBuilder,
        submission: SubmissionClient,
        owner_signer: Keypair,
        *,
        journal: TokenizationJournal | None = None,
        max_attempts: int = 3,
        backoff_initial: float = 0.5,
        backoff_max: float = 8.0,
        backoff_jitter: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self._gateway = gateway
        self._builder = builder
        self._submission = submission
        self._owner_signer = owner_signer
        self._journal = journal
        self._max_attempts = max_attempts
        self._wait = wait_exponential(multiplier=backoff_initial, max=backoff_max) + wait_random(0, backoff_jitter)
        self._sleep = sleep
        self._jobs: dict[str, TokenizationJob] = {}
        self._tasks: dict[str, asyncio.Task[None]] = {}
        self._writes: set[asyncio.Task[None]] = set()

    # -- public surface -------------------------------------------------

    def start(self, owner_id: str) -> TokenizationJob:
        """Admit a job and schedule it; returns immediately.

        A refused admission comes back as a detached Failed job and leaves the
        owner's in-flight job untouched.
        """
        owner_id = (owner_id or "").strip()
        if not owner_id:
            return TokenizationJob.rejected(owner_id, ErrorKind.VALIDATION, "owner id is required")

        # No await between the check and the insert, so admission is atomic
        # with respect to every other task on the loop.
        current = self._jobs.get(owner_id)
        if current is not None and not current.is_terminal:
            logger.info("Refusing tokenization for %s: job %s is %s", owner_id, current.id, current.status.value)
            return TokenizationJob.rejected(
                owner_id,
                ErrorKind.CONFLICT,
                f"job {current.id} is already {current.status.value}",
            )

        job = TokenizationJob(owner_id=owner_id)
        self._jobs[owner_id] = job
        task = asyncio.create_task(self._run(job), name=f"tokenize:{owner_id}:{job.id}")
        self._tasks[owner_id] = task
        task.add_done_callback(lambda t, admitted=job: self._on_task_done(admitted, t))
        logger.info("Admitted tokenization job %s for owner %s", job.id, owner_id)
        return job

    async def tokenize(self, owner_id: str) -> TokenizationJob:
        job = self.start(owner_id)
        if job.is_terminal:
            return job
        task = self._tasks.get(job.owner_id)
        if task is not None:
            await asyncio.wait([task])
        return job

    async def wait(self, owner_id: str) -> TokenizationJob:
        task = self._tasks.get(owner_id)
        if task is not None:
            # asyncio.wait leaves the task running if the waiter is cancelled
            # and does not re-raise the task's own cancellation.
            await asyncio.wait([task])
        return await self.get_job(owner_id)

    async def get_job(self, owner_id: str) -> TokenizationJob:
        job = self._jobs.get(owner_id)
        if job is not None:
            return job
        if self._journal is not None:
            job = await self._journal.latest(owner_id)
            live = self._jobs.get(owner_id)
            if live is not None:
                return live
            if job is not None:
                if not job.is_terminal:
                    await self._close_stale(job)
                return job
        raise JobNotFoundError(owner_id)

    async def history(self, owner_id: str, limit: int = 20) -> list[TokenizationJob]:
        if self._journal is None:
            job = self._jobs.get(owner_id)
            return [job] if job else []
        return await self._journal.history(owner_id, limit=limit)

    def cancel(self, owner_id: str) -> bool:
        """Cancel a job that has not yet begun submitting.

        Returns False when the job is past the point of no return or already
        finished.
        """
        job = self._jobs.get(owner_id)
        if job is None:
            raise JobNotFoundError(owner_id)
        task = self._tasks.get(owner_id)
        if task is None or task.done() or job.submission_started or job.status not in _CANCELLABLE:
            logger.info("Cancellation of job %s refused in status %s", job.id, job.status.value)
            return False
        task.cancel()
        logger.info("Cancellation requested for job %s (%s)", job.id, job.status.value)
        return True

    def in_flight(self) -> list[TokenizationJob]:
        return [job for job in self._jobs.values() if not job.is_terminal]

    async def recover(self) -> list[TokenizationJob]:
        """Close journaled jobs that a previous process left unfinished.

        Called once at startup, before any job is admitted. A job that had
        started submitting ends Indeterminate, any other ends Cancelled.
        """
        if self._journal is None:
            return []
        closed = []
        for job in await self._journal.unfinished():
            live = self._jobs.get(job.owner_id)
            if live is not None and live.id == job.id:
                continue
            await self._close_stale(job)
            closed.append(job)
        return closed

    async def aclose(self) -> None:
        tasks = list(self._tasks.values())
        if tasks:
            logger.info("Waiting for %d tokenization job(s) to finish", len(tasks))
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._writes:
            await asyncio.gather(*self._writes, return_exceptions=True)

    # -- job task ---------------------------------------------------------

    def _on_task_done(self, job: TokenizationJob, task: asyncio.Task[None]) -> None:
        if self._tasks.get(job.owner_id) is task:
            del self._tasks[job.owner_id]
        if job.is_terminal:
            return
        # Cancelled before its first step ran, so _run never saw it.
        self._interrupt(job, "cancelled")
        logger.warning("Job %s for %s was cancelled before it started", job.id, job.owner_id)
        if self._journal is not None:
            write = asyncio.create_task(self._record(job), name=f"journal:{job.id}")
            self._writes.add(write)
            write.add_done_callback(self._writes.discard)

    async def _run(self, job: TokenizationJob) -> None:
        job.attempts = 1
        try:
            await self._record(job)
            await self._execute(job)
        except TokenizationError as exc:
            if exc.details and isinstance(exc.details, dict) and exc.details.get("signature"):
                job.signature = exc.details["signature"]
            job.fail(exc.kind, exc.reason)
        except asyncio.CancelledError:
            self._interrupt(job, "cancelled")
        except Exception as exc:  # job boundary: every outcome must land in job state
            logger.exception("Tokenization job %s crashed in %s", job.id, job.status.value)
            kind = ErrorKind.TRANSPORT if isinstance(exc, httpx.HTTPError) else ErrorKind.REJECTED
            job.fail(kind, f"unexpected {exc.__class__.__name__}: {exc}")

        if job.status is JobStatus.TOKENIZED:
            logger.info(
                "Job %s tokenized %d design(s) for %s into %s (signature %s, attempts %d)",
                job.id,
                job.design_count,
                job.owner_id,
                job.account.address if job.account else "?",
                job.signature,
                job.attempts,
            )
        else:
            assert job.error is not None
            logger.warning(
                "Job %s for %s failed with %s after %d attempt(s): %s",
                job.id,
                job.owner_id,
                job.error.kind.value,
                job.attempts,
                job.error.message,
            )
        await self._record(job)

    async def _execute(self, job: TokenizationJob) -> None:
        designs = await self._retrying(job, self._fetch_designs, job.owner_id)
        if not designs:
            raise TokenizationError(ErrorKind.NO_DESIGNS, f"owner {job.owner_id} has no designs to tokenize")
        job.snapshot(tuple(designs))

        await self._enter(job, JobStatus.BUILDING)
        payload = serialize(job.designs)
        job.payload_sha256 = hashlib.sha256(payload).hexdigest()

        await self._retrying(job, self._put_on_chain, job, payload)
        job.error = None
        job.transition(JobStatus.TOKENIZED)

    async def _fetch_designs(self, owner_id: str) -> list[DesignRecord]:
        try:
            return list(await self._gateway.list_designs(owner_id))
        except DesignValidationError as exc:
            raise TokenizationError(ErrorKind.VALIDATION, f"stored design is invalid: {exc}") from exc
        except DBAPIError as exc:
            raise TokenizationError(ErrorKind.TRANSPORT, f"design store unavailable: {exc.__class__.__name__}") from exc

    async def _put_on_chain(self, job: TokenizationJob, payload: bytes) -> None:
        if job.status is not JobStatus.BUILDING:
            await self._enter(job, JobStatus.BUILDING)
        handle, transaction = await self._builder.build(self._owner_signer, payload)

        job.submission_started = True
        job.account = handle
        job.signature = None
        await self._enter(job, JobStatus.SUBMITTING)

        try:
            confirmation = await self._submission.submit(self._owner_signer, transaction.account_signer, transaction)
        except TokenizationError as exc:
            if exc.kind is not ErrorKind.TIMED_OUT:
                raise
            signature = exc.details["signature"]
            job.signature = signature
            landed = await self._submission.check_landed(signature, transaction.last_valid_block_height)
            logger.info("Job %s: transaction %s timed out, landed check says %s", job.id, signature, landed.value)
            if landed is LandedStatus.LANDED:
                return
            if landed is LandedStatus.FAILED:
                raise TokenizationError(ErrorKind.REJECTED, f"transaction {signature} failed on chain", exc.details) from exc
            if landed is LandedStatus.EXPIRED:
                raise TokenizationError(
                    ErrorKind.TIMED_OUT,
                    f"{exc.reason}; blockhash expired without the transaction landing",
                    {**exc.details, "expired": True},
                ) from exc
            raise TokenizationError(
                ErrorKind.INDETERMINATE,
                f"could not establish whether {signature} landed; reconcile account {handle.address} manually",
                exc.details,
            ) from exc
        job.signature = confirmation.signature

    # -- helpers ----------------------------------------------------------

    @staticmethod
    def _interrupt(job: TokenizationJob, verb: str) -> None:
        if job.submission_started or job.signature or job.account is not None:
            address = job.account.address if job.account else "?"
            job.fail(
                ErrorKind.INDETERMINATE,
                f"{verb} while a transaction was in flight; reconcile account {address} manually",
            )
        else:
            job.fail(ErrorKind.CANCELLED, f"{verb} while {job.status.value}")

    async def _close_stale(self, job: TokenizationJob) -> None:
        previous = job.status.value
        self._interrupt(job, "process stopped")
        logger.warning(
            "Closed job %s for %s left %s by a previous process: %s",
            job.id,
            job.owner_id,
            previous,
            job.error.kind.value if job.error else "?",
        )
        await self._record(job)

    async def _retrying(self, job: TokenizationJob, step: Callable[..., Awaitable[T]], *args: Any) -> T:
        """Run ``step`` with the job-wide attempt budget.

        The counter is shared by every step of a job: it starts at 1 and each
        retry increments it, so a job never makes more than max_attempts tries.
        """
        retrying = AsyncRetrying(
            retry=retry_if_exception(_is_retryable),
            stop=lambda state: job.attempts >= self._max_attempts,
            wait=self._wait,
            before_sleep=lambda state: self._on_retry(job, state),
            sleep=self._sleep,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                return await step(*args)
        raise AssertionError("retry loop ended without an outcome")

    def _on_retry(self, job: TokenizationJob, state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        if isinstance(exc, TokenizationError):
            job.error = JobError(kind=exc.kind, message=exc.reason)
        delay = state.next_action.sleep if state.next_action else 0.0
        logger.warning(
            "Job %s attempt %d/%d failed in %s: %s; retrying in %.2fs",
            job.id,
            job.attempts,
            self._max_attempts,
            job.status.value,
            exc,
            delay,
        )
        job.attempts += 1

    async def _enter(self, job: TokenizationJob, status: JobStatus) -> None:
        job.transition(status)
        logger.info("Job %s -> %s (attempt %d)", job.id, status.value, job.attempts)
        await self._record(job)

    async def _record(self, job: TokenizationJob) -> None:
        if self._journal is not None:
            await self._journal.record(job)


__all__ = ["JobNotFoundError", "TokenizationOrchestrator"]
