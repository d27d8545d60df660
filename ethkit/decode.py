"""ABI decoding of binary data into Python values."""

from __future__ import annotations

import dataclasses
from typing import Any

from .abitype import AbiError, AbiType, Kind
from .primitives import Address

_WORD = 32
_MAX_INT_256 = (1 << 255) - 1
_TWO_256 = 1 << 256
_NATIVE_SIZES = (8, 16, 32, 64)


def decode(t: AbiType, data: bytes) -> Any:
    """Decode ``data`` according to the ABI type ``t``."""
    raw = memoryview(bytes(data))
    if len(raw) == 0:
        raise AbiError("empty input")
    value, _ = _decode(t, raw)
    return value


def decode_struct(t: AbiType, data: bytes, cls: type) -> Any:
    """Decode a tuple into a new instance of the dataclass ``cls``.

    Fields are matched by their ``abi`` metadata name, else by field name
    without regard to case.
    """
    value = decode(t, data)
    if not isinstance(value, dict):
        raise AbiError("expected a tuple to decode into a struct")
    if not (dataclasses.is_dataclass(cls) and isinstance(cls, type)):
        raise AbiError(f"{cls!r} is not a dataclass")

    lowered = {key.lower(): key for key in value}
    kwargs: dict[str, Any] = {}
    for fld in dataclasses.fields(cls):
        if not fld.init or fld.name.startswith("_"):
            continue
        tag = fld.metadata.get("abi", "")
        if tag == "-":
            continue
        key = tag or fld.name
        if key in value:
            kwargs[fld.name] = value[key]
        elif key.lower() in lowered:
            kwargs[fld.name] = value[lowered[key.lower()]]
    try:
        return cls(**kwargs)
    except TypeError as err:
        raise AbiError(f"cannot build {cls.__name__}: {err}") from err


def _decode(t: AbiType, data: memoryview) -> tuple[Any, memoryview]:
    if len(data) < _WORD:
        raise AbiError("incorrect length")

    length = _read_length(data) if t.is_variable_input() else 0
    kind = t.kind

    if kind is Kind.TUPLE:
        return _decode_tuple(t, data)
    if kind is Kind.SLICE:
        return _decode_sequence(t, data[_WORD:], length)
    if kind is Kind.ARRAY:
        return _decode_sequence(t, data, t.size)

    word = data[:_WORD]
    if kind is Kind.BOOL:
        value: Any = _decode_bool(word)
    elif kind in (Kind.INT, Kind.UINT):
        value = _read_integer(t, word)
    elif kind is Kind.STRING:
        value = bytes(data[_WORD:_WORD + length]).decode("utf-8", errors="replace")
    elif kind is Kind.BYTES:
        value = bytes(data[_WORD:_WORD + length])
    elif kind is Kind.ADDRESS:
        value = _read_address(word)
    elif kind is Kind.FIXED_BYTES:
        value = _read_fixed_bytes(t, word)
    elif kind is Kind.FUNCTION:
        value = _read_function(word)
    else:
        raise AbiError(f"decoding not available for type '{kind}'")
    return value, data[_WORD:]


def _read_address(word) -> Address:
    if len(word) != _WORD:
        raise AbiError("len is not correct")
    return Address(bytes(word[12:]))


def _read_integer(t: AbiType, word) -> int:
    signed = t.kind is Kind.INT
    if t.size in _NATIVE_SIZES:
        return int.from_bytes(bytes(word[-(t.size // 8):]), "big", signed=signed)
    number = int.from_bytes(bytes(word), "big")
    if signed and number > _MAX_INT_256:
        number -= _TWO_256
    return number


def _read_function(word) -> bytes:
    trailer = bytes(word[24:32])
    if any(trailer):
        raise AbiError(
            "function type expects the last 8 bytes to be empty but found: "
            + trailer.hex()
        )
    return bytes(word[:24])


def _read_fixed_bytes(t: AbiType, word) -> bytes:
    return bytes(word[: t.size])


def _decode_bool(word) -> bool:
    last = word[31]
    if last == 0:
        return False
    if last == 1:
        return True
    raise AbiError("bad boolean")


def _decode_tuple(t: AbiType, data: memoryview) -> tuple[dict[str, Any], memoryview]:
    result: dict[str, Any] = {}
    orig = data
    for index, item in enumerate(t.tuple_elems):
        if len(data) < _WORD:
            raise AbiError("incorrect length")
        dynamic = item.elem.is_dynamic()
        entry = orig[_read_offset(data, len(orig)):] if dynamic else data

        value, tail = _decode(item.elem, entry)
        data = data[_WORD:] if dynamic else tail

        name = item.name or str(index)
        if name in result:
            raise AbiError("tuple with repeated values")
        result[name] = value
    return result, data


def _decode_sequence(
    t: AbiType, data: memoryview, size: int
) -> tuple[list[Any], memoryview]:
    if size < 0:
        raise AbiError("size is lower than zero")
    if _WORD * size > len(data):
        raise AbiError("size is too big")

    result: list[Any] = []
    orig = data
    dynamic = t.elem.is_dynamic()
    for _ in range(size):
        if len(data) < _WORD:
            raise AbiError("incorrect length")
        entry = orig[_read_offset(data, len(orig)):] if dynamic else data

        value, tail = _decode(t.elem, entry)
        data = data[_WORD:] if dynamic else tail
        result.append(value)
    return result, data


def _read_offset(data: memoryview, limit: int) -> int:
    offset = int.from_bytes(bytes(data[:_WORD]), "big")
    if offset.bit_length() > 63:
        raise AbiError("offset larger than int64")
    if offset > limit:
        raise AbiError(f"offset insufficient {limit} require {offset}")
    return offset


def _read_length(data: memoryview) -> int:
    length = int.from_bytes(bytes(data[:_WORD]), "big")
    if length.bit_length() > 63:
        raise AbiError("length larger than int64")
    if length > len(data) - _WORD:
        raise AbiError(f"length insufficient {len(data)} require {length}")
    return length