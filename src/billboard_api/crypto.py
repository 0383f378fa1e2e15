from __future__ import annotations
from typing import Union

import rfc8785
from eth_utils import keccak

from .errors import ValidationError

DIGEST_SIZE = 32


def keccak256(data: bytes) -> bytes:
    return keccak(data)


def to_hex(b: bytes) -> str:
    """Encode bytes as 0x-prefixed lowercase hex."""
    return "0x" + b.hex()


def digest_bytes(d: Union[bytes, str]) -> bytes:
    """Parse a 32-byte digest given as raw bytes or 0x-prefixed hex."""
    if isinstance(d, (bytes, bytearray)):
        raw = bytes(d)
    elif isinstance(d, str) and d[:2] in ("0x", "0X"):
        try:
            raw = bytes.fromhex(d[2:])
        except ValueError as e:
            raise ValidationError(f"invalid digest hex: {d!r}") from e
    else:
        raise ValidationError(f"digest must be bytes or 0x-prefixed hex, got {d!r}")
    if len(raw) != DIGEST_SIZE:
        raise ValidationError(f"digest must be {DIGEST_SIZE} bytes, got {len(raw)}")
    return raw


def jcs_dumps(obj) -> bytes:
    """Deterministic canonical JSON bytes per RFC8785."""
    return rfc8785.dumps(obj)
