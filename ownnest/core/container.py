"""Simple dependency container for wiring core services."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ownnest.core.config import Settings, get_settings
from ownnest.domain.designs import SqlDesignGateway
from ownnest.domain.tokenization import (
    SubmissionClient,
    TokenizationJournal,
    TokenizationOrchestrator,
    TransactionBuilder,
)
from ownnest.domain.tokenization.ports import LedgerRpc
from ownnest.infrastructure.database.session import get_session_factory
from ownnest.infrastructure.ledger import Keypair, SolanaRpcClient

logger = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised when settings cannot produce a working container."""


def load_owner_keypair(settings: Settings) -> Keypair:
    wallet = settings.wallet
    if wallet.secret_key and wallet.keypair_path:
        raise ConfigurationError("configure either wallet.secret_key or wallet.keypair_path, not both")
    try:
        if wallet.secret_key:
            return Keypair.from_base58(wallet.secret_key)
        if wallet.keypair_path:
            return Keypair.from_json_file(wallet.keypair_path.expanduser())
    except (ValueError, OSError) as exc:
        raise ConfigurationError(f"owner wallet could not be loaded: {exc}") from exc
    raise ConfigurationError(
        "no owner wallet configured; set OWNNEST_WALLET__KEYPAIR_PATH or OWNNEST_WALLET__SECRET_KEY"
    )


@dataclass(slots=True)
class ApplicationContainer:
    settings: Settings
    session_factory: async_sessionmaker[AsyncSession]
    designs: SqlDesignGateway
    journal: TokenizationJournal
    orchestrator: TokenizationOrchestrator
    rpc: LedgerRpc
    owned_rpc: Optional[SolanaRpcClient] = None

    async def aclose(self) -> None:
        await self.orchestrator.aclose()
        if self.owned_rpc is not None:
            await self.owned_rpc.aclose()


def build_container(
    settings: Settings | None = None,
    *,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
    rpc: LedgerRpc | None = None,
    owner: Keypair | None = None,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> ApplicationContainer:
    settings = settings or get_settings()
    session_factory = session_factory or get_session_factory()
    owner = owner or load_owner_keypair(settings)

    owned_rpc = None
    if rpc is None:
        owned_rpc = SolanaRpcClient(settings.rpc_url, timeout=settings.ledger.request_timeout_seconds)
        rpc = owned_rpc

    ledger = settings.ledger
    policy = settings.tokenization
    designs = SqlDesignGateway(session_factory)
    journal = TokenizationJournal(session_factory)
    orchestrator = TokenizationOrchestrator(
        designs,
        TransactionBuilder(rpc, ledger.program_id, commitment=ledger.commitment),
        SubmissionClient(
            rpc,
            commitment=ledger.commitment,
            confirm_timeout=ledger.confirm_timeout_seconds,
            poll_interval=ledger.poll_interval_seconds,
            sleep=sleep,
        ),
        owner,
        journal=journal,
        max_attempts=policy.max_attempts,
        backoff_initial=policy.backoff_initial_seconds,
        backoff_max=policy.backoff_max_seconds,
        backoff_jitter=policy.backoff_jitter_seconds,
        sleep=sleep,
    )
    logger.info(
        "Container ready: cluster=%s program=%s owner=%s",
        ledger.cluster if ledger.rpc_url is None else ledger.rpc_url,
        ledger.program_id,
        owner.address,
    )
    return ApplicationContainer(
        settings=settings,
        session_factory=session_factory,
        designs=designs,
        journal=journal,
        orchestrator=orchestrator,
        rpc=rpc,
        owned_rpc=owned_rpc,
    )


__all__ = ["ApplicationContainer", "ConfigurationError", "build_container", "load_owner_keypair"]
