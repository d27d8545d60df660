"""Decoding of the reason string carried by a reverted call."""

from __future__ import annotations

from .abitype import AbiError, new_type
from .decode import decode

_REVERT_ID = bytes([0x08, 0xC3, 0x79, 0xA0])
_REASON_TYPE = new_type("tuple(string)")


def unpack_revert_error(data: bytes) -> str:
    """Return the reason of an ``Error(string)`` revert payload."""
    raw = bytes(data)
    if not raw.startswith(_REVERT_ID):
        raise AbiError("revert error prefix not found")
    values = decode(_REASON_TYPE, raw[len(_REVERT_ID):])
    return values["0"]