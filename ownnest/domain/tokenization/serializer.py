"""Deterministic encoding of a design snapshot into the program's payload."""

from __future__ import annotations

import json
from typing import Any, Sequence

from ownnest.domain.designs import DesignRecord

from .errors import ErrorKind, TokenizationError

# Data capacity of a design account as allocated by the on-chain program
# (space = 8 + 4 + 1024).
MAX_PAYLOAD_BYTES = 1024

# Wire key -> DesignRecord attribute, in payload order.
PAYLOAD_FIELDS: tuple[tuple[str, str], ...] = (
    ("title", "title"),
    ("color", "color"),
    ("fabric", "fabric"),
    ("buttons", "buttons"),
    ("imageUrl", "image_url"),
)


def serialize(records: Sequence[DesignRecord], *, max_bytes: int = MAX_PAYLOAD_BYTES) -> bytes:
    """Encode records as ``{"designs": [...]}`` compact UTF-8 JSON.

    Record order is preserved and keys are emitted in a fixed order, so equal
    input always yields byte-identical output.
    """
    designs = [{key: getattr(record, attr) for key, attr in PAYLOAD_FIELDS} for record in records]
    payload = json.dumps({"designs": designs}, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    if len(payload) > max_bytes:
        raise TokenizationError(
            ErrorKind.PAYLOAD_TOO_LARGE,
            f"payload is {len(payload)} bytes, account capacity is {max_bytes}",
            {"size": len(payload), "limit": max_bytes, "records": len(designs)},
        )
    return payload


def deserialize(payload: bytes) -> list[dict[str, Any]]:
    data = json.loads(payload.decode("utf-8"))
    if not isinstance(data, dict) or not isinstance(data.get("designs"), list):
        raise ValueError("payload is not a design list")
    return data["designs"]


__all__ = ["MAX_PAYLOAD_BYTES", "PAYLOAD_FIELDS", "deserialize", "serialize"]
