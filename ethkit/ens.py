"""ENS name hashing."""

from __future__ import annotations

from .primitives import Hash, keccak256


def name_hash(name: str) -> Hash:
    """Return the ENS namehash of ``name``; the empty name hashes to zero."""
    node = bytes(32)
    if name == "":
        return Hash(node)
    for label in reversed(name.split(".")):
        node = keccak256(node + keccak256(label.encode()))
    return Hash(node)