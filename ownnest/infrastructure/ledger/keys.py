"""Ed25519 keypairs and base58 addresses for ledger accounts."""

from __future__ import annotations

import json
from pathlib import Path

import base58
from cryptography.exceptions import InvalidSignature
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric.ed25519 import Ed25519PrivateKey, Ed25519PublicKey

PUBLIC_KEY_LENGTH = 32
SECRET_KEY_LENGTH = 64
SIGNATURE_LENGTH = 64


class InvalidKeyError(ValueError):
    """Raised when key material cannot be decoded."""


def encode_address(public_key: bytes) -> str:
    if len(public_key) != PUBLIC_KEY_LENGTH:
        raise InvalidKeyError(f"public key must be {PUBLIC_KEY_LENGTH} bytes, got {len(public_key)}")
    return base58.b58encode(public_key).decode("ascii")


def decode_address(address: str) -> bytes:
    """Decode a base58 account address into its 32 raw bytes."""
    address = (address or "").strip()
    if not address:
        raise InvalidKeyError("empty address")
    try:
        raw = base58.b58decode(address)
    except ValueError as exc:
        raise InvalidKeyError(f"address is not base58: {address!r}") from exc
    if len(raw) != PUBLIC_KEY_LENGTH:
        raise InvalidKeyError(f"address must decode to {PUBLIC_KEY_LENGTH} bytes, got {len(raw)}")
    return raw


def verify_signature(public_key: bytes, message: bytes, signature: bytes) -> bool:
    try:
        Ed25519PublicKey.from_public_bytes(public_key).verify(signature, message)
        return True
    except (InvalidSignature, ValueError):
        return False


class Keypair:
    """An ed25519 signing key together with its public address.

    The 64-byte secret key layout matches the Solana CLI: the 32-byte seed
    followed by the 32-byte public key.
    """

    __slots__ = ("_private", "_public")

    def __init__(self, private_key: Ed25519PrivateKey) -> None:
        self._private = private_key
        self._public = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PublicFormat.Raw,
        )

    @classmethod
    def generate(cls) -> "Keypair":
        return cls(Ed25519PrivateKey.generate())

    @classmethod
    def from_seed(cls, seed: bytes) -> "Keypair":
        if len(seed) != 32:
            raise InvalidKeyError("ed25519 seed must be 32 bytes")
        return cls(Ed25519PrivateKey.from_private_bytes(bytes(seed)))

    @classmethod
    def from_secret_key(cls, secret: bytes) -> "Keypair":
        if len(secret) != SECRET_KEY_LENGTH:
            raise InvalidKeyError(f"secret key must be {SECRET_KEY_LENGTH} bytes, got {len(secret)}")
        keypair = cls.from_seed(secret[:32])
        if keypair.public_key != bytes(secret[32:]):
            raise InvalidKeyError("secret key public half does not match its seed")
        return keypair

    @classmethod
    def from_base58(cls, secret: str) -> "Keypair":
        try:
            raw = base58.b58decode(secret.strip())
        except ValueError as exc:
            raise InvalidKeyError("secret key is not base58") from exc
        return cls.from_secret_key(raw)

    @classmethod
    def from_json_file(cls, path: str | Path) -> "Keypair":
        """Load a Solana CLI keypair file (a JSON array of 64 integers)."""
        data = json.loads(Path(path).expanduser().read_text(encoding="utf-8"))
        if not isinstance(data, list) or not all(isinstance(b, int) and 0 <= b <= 255 for b in data):
            raise InvalidKeyError(f"{path} is not a keypair file")
        return cls.from_secret_key(bytes(data))

    @property
    def public_key(self) -> bytes:
        return self._public

    @property
    def address(self) -> str:
        return encode_address(self._public)

    @property
    def secret_key(self) -> bytes:
        seed = self._private.private_bytes(
            encoding=serialization.Encoding.Raw,
            format=serialization.PrivateFormat.Raw,
            encryption_algorithm=serialization.NoEncryption(),
        )
        return seed + self._public

    def sign(self, message: bytes) -> bytes:
        return self._private.sign(message)

    def __repr__(self) -> str:
        return f"Keypair({self.address})"


__all__ = [
    "Keypair",
    "InvalidKeyError",
    "PUBLIC_KEY_LENGTH",
    "SIGNATURE_LENGTH",
    "decode_address",
    "encode_address",
    "verify_signature",
]
