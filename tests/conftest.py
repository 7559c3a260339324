"""Shared fixtures: an in-memory ledger, a virtual clock and a SQLite store."""

from __future__ import annotations

import asyncio
import hashlib
from typing import Any, Optional, Sequence

import base58
import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from ownnest.core.config import LedgerSettings, Settings, TokenizationSettings
from ownnest.domain.designs import DesignRecord, SqlDesignGateway
from ownnest.domain.tokenization import (
    SubmissionClient,
    TokenizationJournal,
    TokenizationOrchestrator,
    TransactionBuilder,
)
from ownnest.infrastructure.database import build_session_factory, init_db
from ownnest.infrastructure.ledger import AccountInfo, Keypair, LatestBlockhash, SignatureStatus
from ownnest.infrastructure.ledger.wire import Message, deserialize_transaction

PROGRAM_ID = "FJw28pVHzWdnuuQ8LPm97D4NT3aKxdbm2nj15uHh46jx"
BLOCKHASH = base58.b58encode(hashlib.sha256(b"blockhash").digest()).decode("ascii")


class VirtualClock:
    """Monotonic clock that only moves when something sleeps on it."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay
        await asyncio.sleep(0)


class FakeLedgerRpc:
    """In-memory stand-in for the cluster's JSON-RPC surface.

    A sent transaction lands immediately unless ``drop_sends`` is positive, in
    which case that many sends are accepted but never land.
    """

    def __init__(self) -> None:
        self.rent = 2_039_280
        self.blockhash = BLOCKHASH
        self.last_valid_block_height = 1_000
        self.block_height = 900
        self.drop_sends = 0
        self.landed_err: Any = None
        self.hide_from_recent = False
        self.send_failures: list[Exception] = []
        self.blockhash_failures: list[Exception] = []
        self.status_failures: list[Exception] = []
        self.blockhash_gate: Optional[asyncio.Event] = None
        self.send_gate: Optional[asyncio.Event] = None
        self.sent: list[bytes] = []
        self.calls: list[str] = []
        self.statuses: dict[str, SignatureStatus] = {}
        self.history: dict[str, SignatureStatus] = {}
        self.accounts: dict[str, AccountInfo] = {}

    async def get_minimum_balance_for_rent_exemption(self, space: int, commitment: str | None = None) -> int:
        self.calls.append("getMinimumBalanceForRentExemption")
        return self.rent

    async def get_latest_blockhash(self, commitment: str = "confirmed") -> LatestBlockhash:
        self.calls.append("getLatestBlockhash")
        if self.blockhash_gate is not None:
            await self.blockhash_gate.wait()
        if self.blockhash_failures:
            raise self.blockhash_failures.pop(0)
        return LatestBlockhash(self.blockhash, self.last_valid_block_height)

    async def send_transaction(
        self,
        raw: bytes,
        *,
        skip_preflight: bool = False,
        preflight_commitment: str = "confirmed",
    ) -> str:
        self.calls.append("sendTransaction")
        if self.send_gate is not None:
            await self.send_gate.wait()
        if self.send_failures:
            raise self.send_failures.pop(0)
        self.sent.append(raw)
        signatures, message_bytes = deserialize_transaction(raw)
        signature = base58.b58encode(signatures[0]).decode("ascii")
        if self.drop_sends > 0:
            self.drop_sends -= 1
            return signature

        status = SignatureStatus(slot=42, confirmations=1, err=self.landed_err, confirmation_status="confirmed")
        self.history[signature] = status
        if not self.hide_from_recent:
            self.statuses[signature] = status
        if self.landed_err is None:
            self._store_account(Message.deserialize(message_bytes))
        return signature

    def _store_account(self, message: Message) -> None:
        store = message.instructions[1]
        account = message.account_keys[store.account_indices[0]]
        program = message.account_keys[store.program_id_index]
        self.accounts[base58.b58encode(account).decode("ascii")] = AccountInfo(
            lamports=self.rent,
            owner=base58.b58encode(program).decode("ascii"),
            data=bytes(8) + store.data[8:],
            executable=False,
        )

    async def get_signature_statuses(
        self,
        signatures: Sequence[str],
        *,
        search_transaction_history: bool = False,
    ) -> list[SignatureStatus | None]:
        self.calls.append("getSignatureStatuses")
        if self.status_failures:
            raise self.status_failures.pop(0)
        source = self.history if search_transaction_history else self.statuses
        return [source.get(signature) for signature in signatures]

    async def get_block_height(self, commitment: str = "confirmed") -> int:
        self.calls.append("getBlockHeight")
        return self.block_height

    async def get_account_info(self, address: str, commitment: str = "confirmed") -> AccountInfo | None:
        self.calls.append("getAccountInfo")
        return self.accounts.get(address)


def make_design(owner_id: str = "alice", n: int = 1, **overrides: str) -> DesignRecord:
    values = {
        "owner_id": owner_id,
        "title": f"Oxford shirt {n}",
        "color": "white",
        "fabric": "cotton",
        "buttons": "mother-of-pearl",
        "image_url": f"https://img.example/{owner_id}/{n}.png",
    }
    values.update(overrides)
    return DesignRecord.create(**values)


@pytest.fixture
def clock() -> VirtualClock:
    return VirtualClock()


@pytest.fixture
def rpc() -> FakeLedgerRpc:
    return FakeLedgerRpc()


@pytest.fixture
def owner() -> Keypair:
    return Keypair.from_seed(bytes(range(32)))


@pytest.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'ownnest.db'}")
    await init_db(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return build_session_factory(engine)


@pytest.fixture
def gateway(session_factory) -> SqlDesignGateway:
    return SqlDesignGateway(session_factory)


@pytest.fixture
def journal(session_factory) -> TokenizationJournal:
    return TokenizationJournal(session_factory)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database={"url": f"sqlite+aiosqlite:///{tmp_path / 'ownnest.db'}"},
        ledger=LedgerSettings(program_id=PROGRAM_ID, confirm_timeout_seconds=5.0, poll_interval_seconds=0.5),
        tokenization=TokenizationSettings(
            max_attempts=3,
            backoff_initial_seconds=0.1,
            backoff_max_seconds=1.0,
            backoff_jitter_seconds=0.0,
        ),
    )


@pytest.fixture
def make_orchestrator(gateway, journal, rpc, owner, clock):
    def factory(*, max_attempts: int = 3, design_gateway=None, job_journal=None) -> TokenizationOrchestrator:
        builder = TransactionBuilder(rpc, PROGRAM_ID)
        submission = SubmissionClient(rpc, confirm_timeout=5.0, poll_interval=0.5, clock=clock, sleep=clock.sleep)
        return TokenizationOrchestrator(
            design_gateway or gateway,
            builder,
            submission,
            owner,
            journal=job_journal or journal,
            max_attempts=max_attempts,
            backoff_initial=0.1,
            backoff_max=1.0,
            backoff_jitter=0.0,
            sleep=clock.sleep,
        )

    return factory
