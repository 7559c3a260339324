"""Async JSON-RPC client for a Solana cluster endpoint."""

from __future__ import annotations

import base64
import itertools
import logging
from dataclasses import dataclass
from typing import Any, Sequence

import httpx

logger = logging.getLogger(__name__)

COMMITMENT_ORDER = ("processed", "confirmed", "finalized")

# Node-side conditions that clear up on their own (unhealthy node, slot
# skipped or not yet available, min context slot not reached).
_TRANSIENT_RPC_CODES = frozenset({-32004, -32005, -32007, -32014, -32016})


class LedgerTransportError(Exception):
    """The request did not get a usable answer from the cluster."""


class LedgerRpcError(Exception):
    """The cluster answered with a JSON-RPC error object."""

    def __init__(self, code: int, message: str, data: Any = None) -> None:
        super().__init__(f"{code}: {message}")
        self.code = code
        self.message = message
        self.data = data

    @property
    def is_transient(self) -> bool:
        return self.code in _TRANSIENT_RPC_CODES

    @property
    def is_blockhash_not_found(self) -> bool:
        err = self.data.get("err") if isinstance(self.data, dict) else None
        return err == "BlockhashNotFound" or "blockhash not found" in self.message.lower()


@dataclass(frozen=True, slots=True)
class LatestBlockhash:
    blockhash: str
    last_valid_block_height: int


@dataclass(frozen=True, slots=True)
class SignatureStatus:
    slot: int
    confirmations: int | None
    err: Any
    confirmation_status: str | None

    def reached(self, commitment: str) -> bool:
        if self.confirmation_status is None:
            # Older nodes omit confirmationStatus; null confirmations means rooted.
            return self.confirmations is None or commitment != "finalized"
        return COMMITMENT_ORDER.index(self.confirmation_status) >= COMMITMENT_ORDER.index(commitment)


@dataclass(frozen=True, slots=True)
class AccountInfo:
    lamports: int
    owner: str
    data: bytes
    executable: bool


class SolanaRpcClient:
    """Thin async wrapper over the cluster's JSON-RPC 2.0 API.

    Transport failures, HTTP 429 and 5xx responses and malformed bodies raise
    ``LedgerTransportError``; JSON-RPC ``error`` objects raise ``LedgerRpcError``.
    """

    def __init__(
        self,
        endpoint: str,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.endpoint = endpoint
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._ids = itertools.count(1)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(self, method: str, params: list[Any] | None = None) -> Any:
        request_id = next(self._ids)
        body = {"jsonrpc": "2.0", "id": request_id, "method": method, "params": params or []}
        try:
            response = await self._client.post(self.endpoint, json=body)
        except httpx.HTTPError as exc:
            raise LedgerTransportError(f"{method}: {exc.__class__.__name__}: {exc}") from exc

        if response.status_code == 429 or response.status_code >= 500:
            raise LedgerTransportError(f"{method}: HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise LedgerTransportError(f"{method}: response is not JSON (HTTP {response.status_code})") from exc
        if not isinstance(payload, dict):
            raise LedgerTransportError(f"{method}: unexpected response shape")

        error = payload.get("error")
        if error is not None:
            code = int(error.get("code", 0)) if isinstance(error, dict) else 0
            message = str(error.get("message", "")) if isinstance(error, dict) else str(error)
            data = error.get("data") if isinstance(error, dict) else None
            logger.debug("RPC %s failed with %s: %s", method, code, message)
            raise LedgerRpcError(code, message, data)
        if "result" not in payload:
            raise LedgerTransportError(f"{method}: response has neither result nor error")
        return payload["result"]

    async def get_minimum_balance_for_rent_exemption(self, space: int, commitment: str | None = None) -> int:
        params: list[Any] = [int(space)]
        if commitment:
            params.append({"commitment": commitment})
        result = await self._call("getMinimumBalanceForRentExemption", params)
        return int(result)

    async def get_latest_blockhash(self, commitment: str = "confirmed") -> LatestBlockhash:
        result = await self._call("getLatestBlockhash", [{"commitment": commitment}])
        try:
            value = result["value"]
            return LatestBlockhash(
                blockhash=str(value["blockhash"]),
                last_valid_block_height=int(value["lastValidBlockHeight"]),
            )
        except (KeyError, TypeError) as exc:
            raise LedgerTransportError("getLatestBlockhash: malformed result") from exc

    async def send_transaction(
        self,
        raw: bytes,
        *,
        skip_preflight: bool = False,
        preflight_commitment: str = "confirmed",
    ) -> str:
        config = {
            "encoding": "base64",
            "skipPreflight": skip_preflight,
            "preflightCommitment": preflight_commitment,
            "maxRetries": 0,
        }
        result = await self._call("sendTransaction", [base64.b64encode(raw).decode("ascii"), config])
        return str(result)

    async def get_signature_statuses(
        self,
        signatures: Sequence[str],
        *,
        search_transaction_history: bool = False,
    ) -> list[SignatureStatus | None]:
        result = await self._call(
            "getSignatureStatuses",
            [list(signatures), {"searchTransactionHistory": search_transaction_history}],
        )
        values = result.get("value") if isinstance(result, dict) else None
        if not isinstance(values, list):
            raise LedgerTransportError("getSignatureStatuses: malformed result")
        statuses: list[SignatureStatus | None] = []
        for item in values:
            if item is None:
                statuses.append(None)
                continue
            statuses.append(
                SignatureStatus(
                    slot=int(item.get("slot", 0)),
                    confirmations=item.get("confirmations"),
                    err=item.get("err"),
                    confirmation_status=item.get("confirmationStatus"),
                )
            )
        return statuses

    async def get_block_height(self, commitment: str = "confirmed") -> int:
        return int(await self._call("getBlockHeight", [{"commitment": commitment}]))

    async def get_account_info(self, address: str, commitment: str = "confirmed") -> AccountInfo | None:
        result = await self._call("getAccountInfo", [address, {"encoding": "base64", "commitment": commitment}])
        value = result.get("value") if isinstance(result, dict) else None
        if value is None:
            return None
        data_field = value.get("data") or ["", "base64"]
        return AccountInfo(
            lamports=int(value.get("lamports", 0)),
            owner=str(value.get("owner", "")),
            data=base64.b64decode(data_field[0]),
            executable=bool(value.get("executable", False)),
        )


__all__ = [
    "AccountInfo",
    "COMMITMENT_ORDER",
    "LatestBlockhash",
    "LedgerRpcError",
    "LedgerTransportError",
    "SignatureStatus",
    "SolanaRpcClient",
]
