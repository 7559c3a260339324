"""Protocol for the ledger RPC calls the pipeline depends on."""

from __future__ import annotations

from typing import Protocol, Sequence

from ownnest.infrastructure.ledger.rpc import AccountInfo, LatestBlockhash, SignatureStatus


class LedgerRpc(Protocol):
    async def get_minimum_balance_for_rent_exemption(self, space: int, commitment: str | None = None) -> int:
        ...

    async def get_latest_blockhash(self, commitment: str = "confirmed") -> LatestBlockhash:
        ...

    async def send_transaction(
        self,
        raw: bytes,
        *,
        skip_preflight: bool = False,
        preflight_commitment: str = "confirmed",
    ) -> str:
        ...

    async def get_signature_statuses(
        self,
        signatures: Sequence[str],
        *,
        search_transaction_history: bool = False,
    ) -> list[SignatureStatus | None]:
        ...

    async def get_block_height(self, commitment: str = "confirmed") -> int:
        ...

    async def get_account_info(self, address: str, commitment: str = "confirmed") -> AccountInfo | None:
        ...
