"""Signs, sends and confirms tokenization transactions."""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable

import base58

from ownnest.infrastructure.ledger.keys import Keypair, encode_address
from ownnest.infrastructure.ledger.rpc import LedgerRpcError, LedgerTransportError
from ownnest.infrastructure.ledger.wire import serialize_transaction

from .builder import BuiltTransaction
from .errors import ErrorKind, TokenizationError
from .ports import LedgerRpc

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class Confirmation:
    signature: str
    slot: int
    confirmation_status: str | None


class LandedStatus(str, Enum):
    LANDED = "landed"
    FAILED = "failed"
    EXPIRED = "expired"
    UNKNOWN = "unknown"


class SubmissionClient:
    def __init__(
        self,
        rpc: LedgerRpc,
        *,
        commitment: str = "confirmed",
        confirm_timeout: float = 60.0,
        poll_interval: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._rpc = rpc
        self._commitment = commitment
        self._confirm_timeout = confirm_timeout
        self._poll_interval = poll_interval
        self._clock = clock
        self._sleep = sleep

    def sign(self, owner: Keypair, account_signer: Keypair, transaction: BuiltTransaction) -> tuple[bytes, str]:
        """Return the signed wire bytes and the transaction signature (base58)."""
        message = transaction.message_bytes
        signers = {owner.public_key: owner, account_signer.public_key: account_signer}
        signatures = []
        for key in transaction.message.signer_keys:
            keypair = signers.get(key)
            if keypair is None:
                raise TokenizationError(ErrorKind.REJECTED, f"no signer supplied for {encode_address(key)}")
            signatures.append(keypair.sign(message))
        raw = serialize_transaction(signatures, message)
        return raw, base58.b58encode(signatures[0]).decode("ascii")

    async def submit(self, owner: Keypair, account_signer: Keypair, transaction: BuiltTransaction) -> Confirmation:
        raw, signature = self.sign(owner, account_signer, transaction)
        try:
            returned = await self._rpc.send_transaction(raw, preflight_commitment=self._commitment)
        except LedgerTransportError as exc:
            raise TokenizationError(ErrorKind.TRANSPORT, f"sendTransaction failed: {exc}") from exc
        except LedgerRpcError as exc:
            if exc.is_blockhash_not_found or exc.is_transient:
                raise TokenizationError(ErrorKind.TRANSPORT, f"sendTransaction not accepted yet: {exc}") from exc
            raise TokenizationError(
                ErrorKind.REJECTED,
                f"sendTransaction rejected: {exc}",
                {"code": exc.code, "data": exc.data},
            ) from exc

        if returned != signature:
            raise TokenizationError(
                ErrorKind.REJECTED,
                "cluster acknowledged a different signature",
                {"expected": signature, "returned": returned},
            )
        logger.info("Sent transaction %s for account %s", signature, transaction.account.address)
        return await self._await_confirmation(signature, transaction.last_valid_block_height)

    async def _await_confirmation(self, signature: str, last_valid_block_height: int) -> Confirmation:
        deadline = self._clock() + self._confirm_timeout
        while True:
            status = None
            try:
                statuses = await self._rpc.get_signature_statuses([signature])
                status = statuses[0] if statuses else None
            except (LedgerTransportError, LedgerRpcError) as exc:
                # The transaction is already in flight; a failed poll must not
                # turn into a resubmission, so keep waiting until the deadline.
                logger.warning("Polling status of %s failed: %s", signature, exc)

            if status is not None:
                if status.err is not None:
                    raise TokenizationError(
                        ErrorKind.REJECTED,
                        f"transaction {signature} failed on chain",
                        {"signature": signature, "err": status.err},
                    )
                if status.reached(self._commitment):
                    return Confirmation(signature=signature, slot=status.slot, confirmation_status=status.confirmation_status)

            remaining = deadline - self._clock()
            if remaining <= 0:
                raise TokenizationError(
                    ErrorKind.TIMED_OUT,
                    f"no {self._commitment} confirmation for {signature} within {self._confirm_timeout}s",
                    {"signature": signature, "last_valid_block_height": last_valid_block_height},
                )
            await self._sleep(min(self._poll_interval, remaining))

    async def check_landed(self, signature: str, last_valid_block_height: int) -> LandedStatus:
        """Decide whether a timed-out transaction landed.

        EXPIRED means it is absent and its blockhash can no longer be
        processed, so it will never land. Anything short of that proof is
        UNKNOWN.
        """
        try:
            statuses = await self._rpc.get_signature_statuses([signature], search_transaction_history=True)
            status = statuses[0] if statuses else None
            if status is not None:
                if status.err is not None:
                    return LandedStatus.FAILED
                return LandedStatus.LANDED if status.reached(self._commitment) else LandedStatus.UNKNOWN
            height = await self._rpc.get_block_height(self._commitment)
        except (LedgerTransportError, LedgerRpcError) as exc:
            logger.warning("Landed check for %s failed: %s", signature, exc)
            return LandedStatus.UNKNOWN
        return LandedStatus.EXPIRED if height > last_valid_block_height else LandedStatus.UNKNOWN


__all__ = ["Confirmation", "LandedStatus", "SubmissionClient"]
