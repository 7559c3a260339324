"""Reads a tokenized design account back from the ledger."""

from __future__ import annotations

import struct
from typing import Any, Protocol

from ownnest.infrastructure.ledger.rpc import AccountInfo, LedgerRpcError, LedgerTransportError

from .errors import ErrorKind, TokenizationError
from .models import LedgerAccountHandle
from .serializer import deserialize


class AccountReader(Protocol):
    async def get_account_info(self, address: str, commitment: str = "confirmed") -> AccountInfo | None:
        ...


def decode_account_data(data: bytes) -> bytes:
    """Strip the 8-byte account discriminator and the u32 length prefix."""
    if len(data) < 12:
        raise ValueError(f"account data is {len(data)} bytes, too short for a design account")
    (length,) = struct.unpack_from("<I", data, 8)
    if 12 + length > len(data):
        raise ValueError(f"stored payload claims {length} bytes, account holds {len(data) - 12}")
    return data[12 : 12 + length]


async def read_designs(
    rpc: AccountReader,
    handle: LedgerAccountHandle,
    *,
    commitment: str = "confirmed",
) -> list[dict[str, Any]]:
    try:
        info = await rpc.get_account_info(handle.address, commitment)
    except (LedgerTransportError, LedgerRpcError) as exc:
        raise TokenizationError(ErrorKind.TRANSPORT, f"could not read account {handle.address}: {exc}") from exc
    if info is None:
        raise TokenizationError(ErrorKind.INDETERMINATE, f"account {handle.address} does not exist at {commitment}")
    if info.owner != handle.program_id:
        raise TokenizationError(
            ErrorKind.REJECTED,
            f"account {handle.address} is owned by {info.owner}, expected {handle.program_id}",
        )
    try:
        return deserialize(decode_account_data(info.data))
    except ValueError as exc:
        raise TokenizationError(ErrorKind.REJECTED, f"account {handle.address} holds no design payload: {exc}") from exc


__all__ = ["AccountReader", "decode_account_data", "read_designs"]
