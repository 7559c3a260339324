"""Solana legacy transaction wire format.

Only the subset needed to create an account and invoke a program is
implemented: compact-u16 lengths, message compilation with the canonical
account ordering, and (de)serialization of signed transactions.
"""

from __future__ import annotations

import hashlib
import struct
from dataclasses import dataclass, field
from typing import Sequence

from .keys import PUBLIC_KEY_LENGTH, SIGNATURE_LENGTH

SYSTEM_PROGRAM_ID = bytes(PUBLIC_KEY_LENGTH)
PACKET_DATA_SIZE = 1232
BLOCKHASH_LENGTH = 32

_SYSTEM_CREATE_ACCOUNT = 0


class WireFormatError(ValueError):
    """Raised when bytes do not decode as a transaction or message."""


def encode_compact_u16(value: int) -> bytes:
    if not 0 <= value <= 0xFFFF:
        raise WireFormatError(f"compact-u16 out of range: {value}")
    out = bytearray()
    while True:
        byte = value & 0x7F
        value >>= 7
        if value:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_compact_u16(data: bytes, offset: int = 0) -> tuple[int, int]:
    value = 0
    for i in range(3):
        if offset + i >= len(data):
            raise WireFormatError("truncated compact-u16")
        byte = data[offset + i]
        value |= (byte & 0x7F) << (7 * i)
        if not byte & 0x80:
            return value, offset + i + 1
    raise WireFormatError("compact-u16 longer than 3 bytes")


@dataclass(frozen=True, slots=True)
class AccountMeta:
    pubkey: bytes
    is_signer: bool
    is_writable: bool


@dataclass(frozen=True, slots=True)
class Instruction:
    program_id: bytes
    accounts: tuple[AccountMeta, ...]
    data: bytes


@dataclass(frozen=True, slots=True)
class MessageHeader:
    num_required_signatures: int
    num_readonly_signed: int
    num_readonly_unsigned: int


@dataclass(frozen=True, slots=True)
class CompiledInstruction:
    program_id_index: int
    account_indices: tuple[int, ...]
    data: bytes


@dataclass(frozen=True, slots=True)
class Message:
    header: MessageHeader
    account_keys: tuple[bytes, ...]
    recent_blockhash: bytes
    instructions: tuple[CompiledInstruction, ...] = field(default_factory=tuple)

    @classmethod
    def compile(cls, payer: bytes, instructions: Sequence[Instruction], recent_blockhash: bytes) -> "Message":
        """Order accounts as the runtime expects.

        Fee payer first, then writable signers, readonly signers, writable
        non-signers and readonly non-signers, each group in first-seen order.
        """
        if len(recent_blockhash) != BLOCKHASH_LENGTH:
            raise WireFormatError("recent blockhash must be 32 bytes")

        flags: dict[bytes, list[bool]] = {payer: [True, True]}
        for ix in instructions:
            for meta in ix.accounts:
                entry = flags.setdefault(meta.pubkey, [False, False])
                entry[0] = entry[0] or meta.is_signer
                entry[1] = entry[1] or meta.is_writable
            flags.setdefault(ix.program_id, [False, False])

        def _group(signer: bool, writable: bool) -> list[bytes]:
            return [key for key, (s, w) in flags.items() if s == signer and w == writable and key != payer]

        writable_signed = [payer] + _group(True, True)
        readonly_signed = _group(True, False)
        writable_unsigned = _group(False, True)
        readonly_unsigned = _group(False, False)
        keys = tuple(writable_signed + readonly_signed + writable_unsigned + readonly_unsigned)
        index = {key: i for i, key in enumerate(keys)}

        compiled = tuple(
            CompiledInstruction(
                program_id_index=index[ix.program_id],
                account_indices=tuple(index[meta.pubkey] for meta in ix.accounts),
                data=bytes(ix.data),
            )
            for ix in instructions
        )
        header = MessageHeader(
            num_required_signatures=len(writable_signed) + len(readonly_signed),
            num_readonly_signed=len(readonly_signed),
            num_readonly_unsigned=len(readonly_unsigned),
        )
        return cls(header=header, account_keys=keys, recent_blockhash=bytes(recent_blockhash), instructions=compiled)

    @property
    def signer_keys(self) -> tuple[bytes, ...]:
        return self.account_keys[: self.header.num_required_signatures]

    def serialize(self) -> bytes:
        out = bytearray(
            struct.pack(
                "<BBB",
                self.header.num_required_signatures,
                self.header.num_readonly_signed,
                self.header.num_readonly_unsigned,
            )
        )
        out += encode_compact_u16(len(self.account_keys))
        for key in self.account_keys:
            out += key
        out += self.recent_blockhash
        out += encode_compact_u16(len(self.instructions))
        for ix in self.instructions:
            out.append(ix.program_id_index)
            out += encode_compact_u16(len(ix.account_indices))
            out += bytes(ix.account_indices)
            out += encode_compact_u16(len(ix.data))
            out += ix.data
        return bytes(out)

    @classmethod
    def deserialize(cls, data: bytes) -> "Message":
        if len(data) < 3:
            raise WireFormatError("truncated message header")
        header = MessageHeader(*struct.unpack_from("<BBB", data, 0))
        offset = 3

        n_keys, offset = decode_compact_u16(data, offset)
        keys = []
        for _ in range(n_keys):
            keys.append(_take(data, offset, PUBLIC_KEY_LENGTH))
            offset += PUBLIC_KEY_LENGTH
        blockhash = _take(data, offset, BLOCKHASH_LENGTH)
        offset += BLOCKHASH_LENGTH

        n_ix, offset = decode_compact_u16(data, offset)
        instructions = []
        for _ in range(n_ix):
            program_index = _take(data, offset, 1)[0]
            offset += 1
            n_accounts, offset = decode_compact_u16(data, offset)
            indices = tuple(_take(data, offset, n_accounts))
            offset += n_accounts
            n_data, offset = decode_compact_u16(data, offset)
            ix_data = _take(data, offset, n_data)
            offset += n_data
            instructions.append(CompiledInstruction(program_index, indices, ix_data))
        if offset != len(data):
            raise WireFormatError(f"{len(data) - offset} trailing bytes after message")
        return cls(header=header, account_keys=tuple(keys), recent_blockhash=blockhash, instructions=tuple(instructions))


def _take(data: bytes, offset: int, length: int) -> bytes:
    if offset + length > len(data):
        raise WireFormatError("truncated message")
    return bytes(data[offset : offset + length])


def serialize_transaction(signatures: Sequence[bytes], message: bytes) -> bytes:
    out = bytearray(encode_compact_u16(len(signatures)))
    for sig in signatures:
        if len(sig) != SIGNATURE_LENGTH:
            raise WireFormatError("signature must be 64 bytes")
        out += sig
    out += message
    return bytes(out)


def deserialize_transaction(raw: bytes) -> tuple[list[bytes], bytes]:
    count, offset = decode_compact_u16(raw, 0)
    signatures = []
    for _ in range(count):
        signatures.append(_take(raw, offset, SIGNATURE_LENGTH))
        offset += SIGNATURE_LENGTH
    return signatures, bytes(raw[offset:])


def create_account_instruction(
    *,
    from_pubkey: bytes,
    new_account_pubkey: bytes,
    lamports: int,
    space: int,
    owner: bytes,
) -> Instruction:
    data = struct.pack("<IQQ", _SYSTEM_CREATE_ACCOUNT, lamports, space) + owner
    return Instruction(
        program_id=SYSTEM_PROGRAM_ID,
        accounts=(
            AccountMeta(from_pubkey, is_signer=True, is_writable=True),
            AccountMeta(new_account_pubkey, is_signer=True, is_writable=True),
        ),
        data=data,
    )


def anchor_discriminator(instruction_name: str) -> bytes:
    return hashlib.sha256(f"global:{instruction_name}".encode("utf-8")).digest()[:8]


def borsh_bytes(value: bytes) -> bytes:
    return struct.pack("<I", len(value)) + value


__all__ = [
    "AccountMeta",
    "BLOCKHASH_LENGTH",
    "CompiledInstruction",
    "Instruction",
    "Message",
    "MessageHeader",
    "PACKET_DATA_SIZE",
    "SYSTEM_PROGRAM_ID",
    "WireFormatError",
    "anchor_discriminator",
    "borsh_bytes",
    "create_account_instruction",
    "decode_compact_u16",
    "deserialize_transaction",
    "encode_compact_u16",
    "serialize_transaction",
]
