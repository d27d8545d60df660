"""Encoding and parsing of indexed event topics and event logs."""

from __future__ import annotations

from typing import Any, Sequence

from .abitype import AbiError, AbiType, Kind, new_tuple_type
from .decode import decode
from .encode import encode
from .primitives import Hash, Log

_TOPIC_TRUE = Hash(bytes(31) + b"\x01")
_TOPIC_FALSE = Hash()
_WORD_KINDS = (Kind.INT, Kind.UINT, Kind.ADDRESS, Kind.FIXED_BYTES)


def parse_log(args: AbiType, log: Log) -> dict[str, Any]:
    """Parse an event log whose arguments are described by the tuple ``args``."""
    indexed = [item for item in args.tuple_elems if item.indexed]
    non_indexed = [item for item in args.tuple_elems if not item.indexed]

    indexed_values = iter(parse_topics(new_tuple_type(indexed), log.topics[1:]))

    non_indexed_values: dict[str, Any] = {}
    if non_indexed:
        decoded = decode(new_tuple_type(non_indexed), log.data)
        if not isinstance(decoded, dict):
            raise AbiError("bad decoding")
        non_indexed_values = decoded

    result: dict[str, Any] = {}
    position = 0
    for item in args.tuple_elems:
        if item.indexed:
            result[item.name] = next(indexed_values)
        else:
            result[item.name] = non_indexed_values.get(item.name or str(position))
            position += 1
    return result


def parse_topics(args: AbiType, topics: Sequence[bytes]) -> list[Any]:
    """Parse topics, one for each element of the tuple ``args``."""
    if args.kind is not Kind.TUPLE:
        raise AbiError("expected a tuple type")
    if len(args.tuple_elems) != len(topics):
        raise AbiError("bad length")
    return [parse_topic(item.elem, topic) for item, topic in zip(args.tuple_elems, topics)]


def parse_topic(t: AbiType, topic: bytes) -> Any:
    """Parse a single 32-byte topic as a value of type ``t``."""
    raw = bytes(topic)
    if len(raw) != 32:
        raise AbiError(f"topic must be 32 bytes but got {len(raw)}")
    if t.kind is Kind.BOOL:
        if raw == _TOPIC_TRUE:
            return True
        if raw == _TOPIC_FALSE:
            return False
        raise AbiError("is not a boolean")
    if t.kind in _WORD_KINDS:
        return decode(t, raw)
    raise AbiError(f"topic parsing for type {t} not supported")


def encode_topic(t: AbiType, value: Any) -> Hash:
    """Encode ``value`` of type ``t`` as an indexed topic."""
    if t.kind is Kind.BOOL:
        if not isinstance(value, bool):
            raise AbiError(f"failed to encode {type(value).__name__} as bool")
        return _TOPIC_TRUE if value else _TOPIC_FALSE
    if t.kind in (Kind.UINT, Kind.INT, Kind.ADDRESS):
        return Hash(encode(value, t))
    raise AbiError(f"topic encoding for type {t} not supported")