"""Leaf value validation and type-aware ABI encoding.

Every leaf is a tuple matching the tree's leaf encoding (a sequence of ABI
type tags). Values are normalised before hashing so that equivalent inputs
(e.g. a lowercase and a checksummed address, ``"1000"`` and ``1000``) always
produce the same digest and the same persisted form.
"""
from __future__ import annotations
import re
from typing import Any, Iterable, List, Sequence, Tuple

import eth_abi
from eth_abi.exceptions import EncodingError
from eth_utils import is_address, to_checksum_address

from .errors import ValidationError

_INT_RE = re.compile(r"(u?)int([1-9][0-9]{0,2})?")
_BYTES_RE = re.compile(r"bytes([1-9][0-9]?)?")
_HEX_RE = re.compile(r"0x(?:[0-9a-fA-F]{2})*")
# 2**256 has 78 decimal digits
_DECIMAL_RE = re.compile(r"-?[0-9]{1,78}")


def _int_bits(abi_type: str) -> Tuple[bool, int]:
    m = _INT_RE.fullmatch(abi_type)
    if not m:
        raise ValidationError(f"unsupported type: {abi_type}")
    signed = m.group(1) == ""
    bits = int(m.group(2)) if m.group(2) else 256
    if bits < 8 or bits > 256 or bits % 8:
        raise ValidationError(f"unsupported type: {abi_type}")
    return signed, bits


def _bytes_len(abi_type: str) -> int:
    """Return N for ``bytesN`` and 0 for dynamic ``bytes``."""
    m = _BYTES_RE.fullmatch(abi_type)
    if not m:
        raise ValidationError(f"unsupported type: {abi_type}")
    if not m.group(1):
        return 0
    n = int(m.group(1))
    if n < 1 or n > 32:
        raise ValidationError(f"unsupported type: {abi_type}")
    return n


def check_type(abi_type: Any) -> str:
    if not isinstance(abi_type, str):
        raise ValidationError(f"type tag must be a string, got {abi_type!r}")
    if abi_type in ("string", "address", "bool"):
        return abi_type
    if abi_type.startswith("bytes"):
        _bytes_len(abi_type)
        return abi_type
    _int_bits(abi_type)
    if abi_type in ("uint", "int"):
        return abi_type + "256"
    return abi_type


def check_leaf_encoding(types: Iterable[Any]) -> Tuple[str, ...]:
    if isinstance(types, str):
        raise ValidationError("leaf encoding must be a sequence of type tags")
    out = tuple(check_type(t) for t in types)
    if not out:
        raise ValidationError("leaf encoding is empty")
    return out


def _to_bytes(abi_type: str, value: Any) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str) and _HEX_RE.fullmatch(value):
        return bytes.fromhex(value[2:])
    raise ValidationError(f"{abi_type} value must be 0x-prefixed hex, got {value!r}")


def _to_int(abi_type: str, value: Any) -> int:
    signed, bits = _int_bits(abi_type)
    if isinstance(value, bool):
        raise ValidationError(f"{abi_type} value must be an integer, got {value!r}")
    if isinstance(value, int):
        n = value
    elif isinstance(value, str) and _DECIMAL_RE.fullmatch(value):
        n = int(value)
    else:
        raise ValidationError(f"{abi_type} value must be an integer, got {value!r}")
    lo, hi = (-(1 << (bits - 1)), (1 << (bits - 1)) - 1) if signed else (0, (1 << bits) - 1)
    if n < lo or n > hi:
        raise ValidationError(f"{abi_type} value out of range: {n}")
    return n


def normalize_value(abi_type: str, value: Any) -> Any:
    """Return the canonical Python value for ``value`` under ``abi_type``."""
    if abi_type == "string":
        if not isinstance(value, str):
            raise ValidationError(f"string value expected, got {value!r}")
        try:
            value.encode("utf-8")
        except UnicodeEncodeError as e:
            raise ValidationError(f"string value is not valid UTF-8: {value!r}") from e
        return value
    if abi_type == "address":
        if not isinstance(value, str) or not is_address(value):
            raise ValidationError(f"invalid address: {value!r}")
        if not value.startswith(("0x", "0X")):
            raise ValidationError(f"address must be 0x-prefixed: {value!r}")
        return to_checksum_address(value)
    if abi_type == "bool":
        if not isinstance(value, bool):
            raise ValidationError(f"bool value expected, got {value!r}")
        return value
    if abi_type.startswith("bytes"):
        size = _bytes_len(abi_type)
        raw = _to_bytes(abi_type, value)
        if size and len(raw) != size:
            raise ValidationError(f"{abi_type} value must be {size} bytes, got {len(raw)}")
        return "0x" + raw.hex()
    return _to_int(abi_type, value)


def normalize_leaf(leaf_encoding: Sequence[str], value: Any) -> Tuple[Any, ...]:
    if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
        raise ValidationError(f"leaf must be a sequence, got {value!r}")
    if len(value) != len(leaf_encoding):
        raise ValidationError(
            f"leaf arity {len(value)} does not match encoding arity {len(leaf_encoding)}"
        )
    return tuple(normalize_value(t, v) for t, v in zip(leaf_encoding, value))


def to_json_value(abi_type: str, value: Any) -> Any:
    """JSON-safe form of a normalised value (integers become decimal strings)."""
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return value


def leaf_to_json(leaf_encoding: Sequence[str], value: Sequence[Any]) -> List[Any]:
    return [to_json_value(t, v) for t, v in zip(leaf_encoding, value)]


def _abi_arg(abi_type: str, value: Any) -> Any:
    if abi_type.startswith("bytes"):
        return bytes.fromhex(value[2:])
    return value


def encode_leaf(leaf_encoding: Sequence[str], value: Any) -> bytes:
    """ABI-encode one leaf: ``abi.encode(leaf_encoding..., value...)``."""
    leaf = normalize_leaf(leaf_encoding, value)
    try:
        return eth_abi.encode(
            list(leaf_encoding), [_abi_arg(t, v) for t, v in zip(leaf_encoding, leaf)]
        )
    except EncodingError as e:
        raise ValidationError(str(e)) from e
