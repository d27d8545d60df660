"""ABI encoding of Python values."""

from __future__ import annotations

import dataclasses
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from .abitype import AbiError, AbiType, Kind, type_size
from .primitives import Address

_WORD = 32
_MASK_256 = (1 << 256) - 1
_HEX_DIGITS = re.compile(r"[0-9a-fA-F]*")
_DECIMAL = re.compile(r"[+-]?[0-9]+")
_HEXADECIMAL = re.compile(r"[+-]?[0-9a-fA-F]+")


def _pad(data: bytes, size: int, left: bool) -> bytes:
    length = len(data)
    if length == size:
        return data
    if length > size:
        return data[length - size:]
    fill = bytes(size - length)
    return fill + data if left else data + fill


def left_pad(data: bytes, size: int) -> bytes:
    """Pad ``data`` with leading zeros to ``size`` bytes (keeping the tail if longer)."""
    return _pad(bytes(data), size, left=True)


def right_pad(data: bytes, size: int) -> bytes:
    """Pad ``data`` with trailing zeros to ``size`` bytes (keeping the tail if longer)."""
    return _pad(bytes(data), size, left=False)


def encode_hex(data: bytes) -> str:
    """Render bytes as a ``0x``-prefixed hex string."""
    return "0x" + bytes(data).hex()


def decode_hex(text: str) -> bytes:
    """Parse a hex string with an optional ``0x`` prefix."""
    if text.startswith("0x"):
        text = text[2:]
    if len(text) % 2 or not _HEX_DIGITS.fullmatch(text):
        raise AbiError(f"could not decode hex: invalid hex string {text!r}")
    return bytes.fromhex(text)


def _encode_error(value: Any, target: str) -> AbiError:
    return AbiError(f"failed to encode {type(value).__name__} as {target}")


def encode(value: Any, t: AbiType) -> bytes:
    """Encode ``value`` according to the ABI type ``t``."""
    kind = t.kind
    if kind in (Kind.SLICE, Kind.ARRAY):
        return _encode_sequence(value, t)
    if kind is Kind.TUPLE:
        return _encode_tuple(value, t)
    if kind is Kind.STRING:
        return _encode_string(value)
    if kind is Kind.BOOL:
        return _encode_bool(value)
    if kind is Kind.ADDRESS:
        return _encode_address(value)
    if kind in (Kind.INT, Kind.UINT):
        return _encode_num(value)
    if kind is Kind.BYTES:
        return _pack_bytes(_as_bytes(value, "bytes"))
    if kind in (Kind.FIXED_BYTES, Kind.FUNCTION):
        return right_pad(_as_bytes(value, str(kind)), _WORD)
    raise AbiError(f"encoding not available for type '{kind}'")


def _is_sequence(value: Any) -> bool:
    return isinstance(value, Sequence) and not isinstance(
        value, (str, bytes, bytearray, memoryview)
    )


def _encode_sequence(value: Any, t: AbiType) -> bytes:
    if not _is_sequence(value):
        raise _encode_error(value, str(t.kind))
    items = list(value)
    if t.kind is Kind.ARRAY and t.size != len(items):
        raise AbiError("array len incompatible")

    head = [_pack_num(len(items))] if t.is_variable_input() else []
    tail: list[bytes] = []
    dynamic = t.elem.is_dynamic()
    offset = type_size(t.elem) * len(items) if dynamic else 0

    for item in items:
        encoded = encode(item, t.elem)
        if dynamic:
            head.append(_pack_num(offset))
            offset += len(encoded)
            tail.append(encoded)
        else:
            head.append(encoded)
    return b"".join(head + tail)


def _mapping_from_dataclass(obj: Any) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for fld in dataclasses.fields(obj):
        if fld.name.startswith("_"):
            continue
        tag = fld.metadata.get("abi", "")
        if tag == "-":
            continue
        name = tag or fld.name.lower()
        result.setdefault(name, getattr(obj, fld.name))
    return result


def _encode_tuple(value: Any, t: AbiType) -> bytes:
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        value = _mapping_from_dataclass(value)

    if isinstance(value, Mapping):
        by_name = True
    elif _is_sequence(value):
        by_name = False
        value = list(value)
    else:
        raise _encode_error(value, "tuple")

    if len(value) < len(t.tuple_elems):
        raise AbiError("expected at least the same length")

    offset = sum(type_size(item.elem) for item in t.tuple_elems)
    head: list[bytes] = []
    tail: list[bytes] = []

    for index, item in enumerate(t.tuple_elems):
        if by_name:
            key = item.name or str(index)
            if key not in value:
                raise AbiError(f"cannot get key {item.name}")
            element = value[key]
        else:
            element = value[index]

        encoded = encode(element, item.elem)
        if item.elem.is_dynamic():
            head.append(_pack_num(offset))
            tail.append(encoded)
            offset += len(encoded)
        else:
            head.append(encoded)
    return b"".join(head + tail)


def _as_bytes(value: Any, target: str) -> bytes:
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value)
    if isinstance(value, str):
        return decode_hex(value)
    raise _encode_error(value, target)


def _encode_address(value: Any) -> bytes:
    if isinstance(value, str):
        try:
            raw = bytes(Address.from_hex(value))
        except ValueError as err:
            raise AbiError(str(err)) from err
    else:
        raw = _as_bytes(value, "address")
    return left_pad(raw, _WORD)


def _encode_string(value: Any) -> bytes:
    if not isinstance(value, str):
        raise _encode_error(value, "string")
    return _pack_bytes(value.encode("utf-8"))


def _pack_bytes(data: bytes) -> bytes:
    length = len(data)
    return _pack_num(length) + right_pad(data, (length + 31) // 32 * 32)


def _pack_num(number: int) -> bytes:
    return _to_u256(number)


def _to_u256(number: int) -> bytes:
    return (number & _MASK_256).to_bytes(_WORD, "big")


def _parse_number(text: str) -> int:
    if _DECIMAL.fullmatch(text):
        return int(text, 10)
    digits = text[2:]
    if len(text) >= 2 and _HEXADECIMAL.fullmatch(digits):
        return int(digits, 16)
    raise AbiError(f"failed to encode str as number: {text!r}")


def _encode_num(value: Any) -> bytes:
    if isinstance(value, bool):
        raise _encode_error(value, "number")
    if isinstance(value, int):
        return _to_u256(value)
    if isinstance(value, float):
        if not math.isfinite(value):
            raise _encode_error(value, "number")
        return _to_u256(int(value))
    if isinstance(value, str):
        return _to_u256(_parse_number(value))
    raise _encode_error(value, "number")


def _encode_bool(value: Any) -> bytes:
    if not isinstance(value, bool):
        raise _encode_error(value, "bool")
    return _to_u256(1 if value else 0)