"""Random ABI types, matching random values and sample contracts built from them."""

from __future__ import annotations

import random
import string
from typing import Any

from .abitype import AbiError, AbiType, Kind
from .primitives import Address

_RANDOM_TYPES = (
    "bool",
    "int",
    "uint",
    "array",
    "slice",
    "tuple",
    "address",
    "string",
    "bytes",
    "fixedBytes",
)
_BASIC_TYPES = frozenset({"bool", "address", "string", "bytes", "function"})
_MAX_DEPTH = 3
_LETTERS = string.ascii_lowercase + string.ascii_uppercase

_CONTRACT_TEMPLATE = """pragma solidity ^0.5.5;
pragma experimental ABIEncoderV2;

contract Sample {{
	// structs
	{structs}
	function set({inputs}) public view returns ({outputs}) {{
		return ({body});
	}}
}}"""


def _rng(rng: random.Random | None) -> random.Random:
    return rng if rng is not None else random.Random()


def _random_int(rng: random.Random, low: int, high: int) -> int:
    """A random integer in ``[low, high)``."""
    return rng.randrange(low, high)


def _random_number_bits(rng: random.Random) -> int:
    return _random_int(rng, 1, 31) * 8


def _pick_random_type(rng: random.Random, depth: int) -> str:
    while True:
        name = rng.choice(_RANDOM_TYPES)
        if name in _BASIC_TYPES:
            return name
        if name == "int":
            return f"int{_random_number_bits(rng)}"
        if name == "uint":
            return f"uint{_random_number_bits(rng)}"
        if name == "fixedBytes":
            return f"bytes{_random_int(rng, 1, 32)}"
        if depth <= _MAX_DEPTH:
            break

    inner = _pick_random_type(rng, depth + 1)
    if name == "slice":
        return f"{inner}[]"
    if name == "array":
        return f"{inner}[{_random_int(rng, 1, 3)}]"
    # tuple
    count = _random_int(rng, 1, 5)
    elems = [f"{_pick_random_type(rng, depth + 1)} arg{i}" for i in range(count)]
    return f"tuple({','.join(elems)})"


def random_type(rng: random.Random | None = None) -> str:
    """Return the signature of a random ABI type, nested at most a few levels deep."""
    return _pick_random_type(_rng(rng), 1)


def _random_number(t: AbiType, rng: random.Random) -> int:
    width = t.size // 8
    if t.kind is Kind.UINT:
        raw = rng.randbytes(width)
    else:
        # keep the sign bit clear so the value stays non-negative
        raw = b"\x00" + rng.randbytes(width - 1)
    return int.from_bytes(raw, "big")


def generate_random_value(t: AbiType, rng: random.Random | None = None) -> Any:
    """Return a random value that can be encoded as type ``t``."""
    rng = _rng(rng)
    kind = t.kind
    if kind in (Kind.INT, Kind.UINT):
        return _random_number(t, rng)
    if kind is Kind.BOOL:
        return rng.choice((True, False))
    if kind is Kind.ADDRESS:
        return Address(rng.randbytes(Address.SIZE))
    if kind is Kind.STRING:
        return "".join(rng.choice(_LETTERS) for _ in range(_random_int(rng, 1, 100)))
    if kind is Kind.BYTES:
        return rng.randbytes(_random_int(rng, 1, 100))
    if kind in (Kind.FIXED_BYTES, Kind.FUNCTION):
        return rng.randbytes(t.size)
    if kind is Kind.SLICE:
        return [generate_random_value(t.elem, rng) for _ in range(_random_int(rng, 0, 5))]
    if kind is Kind.ARRAY:
        return [generate_random_value(t.elem, rng) for _ in range(t.size)]
    if kind is Kind.TUPLE:
        return {
            item.name or str(index): generate_random_value(item.elem, rng)
            for index, item in enumerate(t.tuple_elems)
        }
    raise AbiError(f"type not implemented: {kind}")


class _ContractGenerator:
    def __init__(self) -> None:
        self.structs: list[str] = []

    def type_name(self, t: AbiType) -> str:
        if t.kind is Kind.TUPLE:
            attrs = [
                f"{self.type_name(item.elem)} attr{index};"
                for index, item in enumerate(t.tuple_elems)
            ]
            ident = len(self.structs)
            self.structs.append(f"struct struct{ident} {{\n" + "\n".join(attrs) + "\n}\n")
            return f"struct{ident}"
        if t.kind is Kind.SLICE:
            return f"{self.type_name(t.elem)}[]"
        if t.kind is Kind.ARRAY:
            return f"{self.type_name(t.elem)}[{t.size}]"
        return str(t)

    def run(self, t: AbiType) -> str:
        inputs, outputs, body = [], [], []
        for index, item in enumerate(t.tuple_elems):
            name = self.type_name(item.elem)
            memory = ""
            if name == "bytes" or any(part in name for part in ("[", "struct", "string")):
                memory = " memory"
            inputs.append(f"{name}{memory} arg{index}")
            outputs.append(f"{name}{memory}")
            body.append(f"arg{index}")
        return _CONTRACT_TEMPLATE.format(
            structs="\n".join(self.structs),
            inputs=",".join(inputs),
            outputs=",".join(outputs),
            body=",".join(body),
        )


def generate_contract(t: AbiType) -> str:
    """Return the source of a contract whose ``set`` function echoes the tuple ``t``."""
    return _ContractGenerator().run(t)