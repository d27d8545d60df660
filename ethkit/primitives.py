"""Basic chain values: addresses, hashes, logs, blocks and keccak hashing."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass, field

from Crypto.Hash import keccak


def keccak256(data: bytes) -> bytes:
    """Return the legacy Keccak-256 digest of ``data``."""
    return keccak.new(digest_bits=256, data=bytes(data)).digest()


def _bytes_from_hex(text: str) -> bytes:
    if text[:2] in ("0x", "0X"):
        text = text[2:]
    try:
        return bytes.fromhex(text)
    except ValueError as err:
        raise ValueError(f"could not decode hex: {err}") from err


class _FixedBytes(bytes):
    """Immutable byte string of a fixed length."""

    SIZE = 0

    def __new__(cls, value: bytes | bytearray | memoryview | None = None):
        if value is None:
            raw = bytes(cls.SIZE)
        elif isinstance(value, int):
            raise TypeError(f"{cls.__name__} expects bytes, not int")
        else:
            raw = bytes(value)
        if len(raw) != cls.SIZE:
            raise ValueError(
                f"{cls.__name__} expects {cls.SIZE} bytes but got {len(raw)}"
            )
        return super().__new__(cls, raw)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({str(self)!r})"


class Address(_FixedBytes):
    """A 20-byte account address."""

    SIZE = 20

    @classmethod
    def from_hex(cls, text: str) -> Address:
        """Parse a hex string, with or without a ``0x`` prefix."""
        return cls(_bytes_from_hex(text))

    def __str__(self) -> str:
        return "0x" + self.hex()


class Hash(_FixedBytes):
    """A 32-byte hash."""

    SIZE = 32

    @classmethod
    def from_hex(cls, text: str) -> Hash:
        """Parse a hex string, with or without a ``0x`` prefix."""
        return cls(_bytes_from_hex(text))

    def __str__(self) -> str:
        return "0x" + self.hex()


@dataclass
class Log:
    """An event log emitted by a contract."""

    address: Address = field(default_factory=Address)
    topics: list[Hash] = field(default_factory=list)
    data: bytes = b""
    block_number: int = 0
    block_hash: Hash = field(default_factory=Hash)
    transaction_hash: Hash = field(default_factory=Hash)
    log_index: int = 0
    removed: bool = False


@dataclass
class Block:
    """A block header together with its transaction list."""

    number: int = 0
    hash: Hash = field(default_factory=Hash)
    parent_hash: Hash = field(default_factory=Hash)
    timestamp: int = 0
    miner: Address = field(default_factory=Address)
    gas_limit: int = 0
    gas_used: int = 0
    extra_data: bytes = b""
    transactions: list = field(default_factory=list)

    def copy(self) -> Block:
        """Return a copy that shares no mutable state with this block."""
        return dataclasses.replace(self, transactions=list(self.transactions))