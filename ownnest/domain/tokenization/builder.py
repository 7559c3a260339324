"""Builds the create-account + store-design transaction for one attempt."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

import base58

from ownnest.infrastructure.ledger.keys import SIGNATURE_LENGTH, Keypair, decode_address, encode_address
from ownnest.infrastructure.ledger.rpc import LedgerRpcError, LedgerTransportError
from ownnest.infrastructure.ledger.wire import (
    BLOCKHASH_LENGTH,
    PACKET_DATA_SIZE,
    SYSTEM_PROGRAM_ID,
    AccountMeta,
    Instruction,
    Message,
    anchor_discriminator,
    borsh_bytes,
    create_account_instruction,
    encode_compact_u16,
)

from .errors import ErrorKind, TokenizationError
from .models import LedgerAccountHandle
from .ports import LedgerRpc

logger = logging.getLogger(__name__)

# Anchor account discriminator + Vec<u8> length prefix.
ACCOUNT_HEADER_BYTES = 8 + 4
STORE_DESIGN_INSTRUCTION = "store_design"


def account_space(payload: bytes) -> int:
    return ACCOUNT_HEADER_BYTES + len(payload)


def store_design_data(payload: bytes) -> bytes:
    return anchor_discriminator(STORE_DESIGN_INSTRUCTION) + borsh_bytes(payload)


@dataclass(frozen=True, slots=True)
class BuiltTransaction:
    message: Message
    account: LedgerAccountHandle
    account_signer: Keypair
    lamports: int
    space: int
    recent_blockhash: str
    last_valid_block_height: int

    @property
    def message_bytes(self) -> bytes:
        return self.message.serialize()

    @property
    def wire_size(self) -> int:
        n_signers = self.message.header.num_required_signatures
        return len(encode_compact_u16(n_signers)) + n_signers * SIGNATURE_LENGTH + len(self.message_bytes)


class TransactionBuilder:
    def __init__(
        self,
        rpc: LedgerRpc,
        program_id: str,
        *,
        commitment: str = "confirmed",
        keypair_factory: Callable[[], Keypair] = Keypair.generate,
    ) -> None:
        self._rpc = rpc
        self._program_id = decode_address(program_id)
        self._commitment = commitment
        self._keypair_factory = keypair_factory

    @property
    def program_id(self) -> str:
        return encode_address(self._program_id)

    async def build(self, owner: Keypair, payload: bytes) -> tuple[LedgerAccountHandle, BuiltTransaction]:
        """Create a fresh design account and the transaction that fills it.

        The account keypair is new on every call, including retries.
        """
        account_signer = self._keypair_factory()
        space = account_space(payload)

        try:
            lamports = await self._rpc.get_minimum_balance_for_rent_exemption(space)
            latest = await self._rpc.get_latest_blockhash(self._commitment)
        except (LedgerTransportError, LedgerRpcError) as exc:
            raise TokenizationError(ErrorKind.SIZING, f"could not price account of {space} bytes: {exc}") from exc

        # CreateAccount allocates the account, so the target program's
        # store_design must write into an existing account and must not
        # declare it with Anchor's `init` constraint.
        instructions = [
            create_account_instruction(
                from_pubkey=owner.public_key,
                new_account_pubkey=account_signer.public_key,
                lamports=lamports,
                space=space,
                owner=self._program_id,
            ),
            Instruction(
                program_id=self._program_id,
                accounts=(
                    AccountMeta(account_signer.public_key, is_signer=True, is_writable=True),
                    AccountMeta(owner.public_key, is_signer=True, is_writable=True),
                    AccountMeta(SYSTEM_PROGRAM_ID, is_signer=False, is_writable=False),
                ),
                data=store_design_data(payload),
            ),
        ]
        try:
            blockhash = base58.b58decode(latest.blockhash)
        except ValueError:
            blockhash = b""
        if len(blockhash) != BLOCKHASH_LENGTH:
            raise TokenizationError(
                ErrorKind.SIZING,
                f"cluster returned an invalid blockhash: {latest.blockhash!r}",
            )
        message = Message.compile(owner.public_key, instructions, blockhash)

        handle = LedgerAccountHandle(address=account_signer.address, program_id=self.program_id)
        built = BuiltTransaction(
            message=message,
            account=handle,
            account_signer=account_signer,
            lamports=lamports,
            space=space,
            recent_blockhash=latest.blockhash,
            last_valid_block_height=latest.last_valid_block_height,
        )
        if built.wire_size > PACKET_DATA_SIZE:
            raise TokenizationError(
                ErrorKind.PAYLOAD_TOO_LARGE,
                f"transaction is {built.wire_size} bytes, packet limit is {PACKET_DATA_SIZE}",
                {"size": built.wire_size, "limit": PACKET_DATA_SIZE},
            )
        logger.debug(
            "Built transaction for account %s: %d bytes, space=%d lamports=%d",
            handle.address,
            built.wire_size,
            space,
            lamports,
        )
        return handle, built


__all__ = [
    "ACCOUNT_HEADER_BYTES",
    "BuiltTransaction",
    "STORE_DESIGN_INSTRUCTION",
    "TransactionBuilder",
    "account_space",
    "store_design_data",
]
