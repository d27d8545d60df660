"""Contract ABI definitions: methods, events, errors and their parsing."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from typing import Any, Callable, Iterable

from .abitype import (
    AbiError,
    AbiType,
    ArgumentStr,
    new_tuple_type_from_args,
    new_type,
)
from .decode import decode as _decode
from .encode import encode as _encode
from .primitives import Hash, Log, keccak256
from .topics import parse_log as _parse_log

_FUNC_WITH_RETURN = re.compile(r"(\w*)\s*\((.*)\)(.*)\s*returns\s*\((.*)\)", re.ASCII)
_FUNC_WITHOUT_RETURN = re.compile(r"(\w*)\s*\((.*)\)(.*)", re.ASCII)


def _build_signature(name: str, typ: AbiType) -> str:
    types = ",".join(str(item.elem).replace("tuple", "") for item in typ.tuple_elems)
    return f"{name}({types})"


@dataclass
class Method:
    """A callable contract function."""

    name: str = ""
    const: bool = False
    inputs: AbiType | None = None
    outputs: AbiType | None = None

    def sig(self) -> str:
        """The canonical signature, e.g. ``transfer(address,uint256)``."""
        return _build_signature(self.name, self.inputs)

    def id(self) -> bytes:
        """The 4-byte selector of the method."""
        return keccak256(self.sig().encode())[:4]

    def encode(self, args: Any) -> bytes:
        """Encode a call: the selector followed by the encoded arguments."""
        return self.id() + _encode(args, self.inputs)

    def decode(self, data: bytes) -> dict[str, Any]:
        """Decode the return data of a call."""
        if not data:
            raise AbiError("empty response")
        return _decode(self.outputs, data)


@dataclass
class Event:
    """A contract event."""

    name: str = ""
    inputs: AbiType | None = None
    anonymous: bool = False

    def sig(self) -> str:
        """The canonical signature of the event."""
        return _build_signature(self.name, self.inputs)

    def id(self) -> Hash:
        """The topic that identifies logs of this event."""
        return Hash(keccak256(self.sig().encode()))

    def match(self, log: Log) -> bool:
        """Whether ``log`` was emitted by this event."""
        return bool(log.topics) and bytes(log.topics[0]) == self.id()

    def parse_log(self, log: Log) -> dict[str, Any]:
        """Parse a log emitted by this event."""
        if not self.match(log):
            raise AbiError("log does not match this event")
        return _parse_log(self.inputs, log)


@dataclass
class Error:
    """A custom contract error."""

    name: str = ""
    inputs: AbiType | None = None


def _overloaded_name(raw_name: str, taken: Callable[[str], bool]) -> str:
    name = raw_name
    index = 0
    while taken(name):
        name = f"{raw_name}{index}"
        index += 1
    return name


@dataclass
class ABI:
    """The interface of a contract."""

    constructor: Method | None = None
    methods: dict[str, Method] = field(default_factory=dict)
    methods_by_signature: dict[str, Method] = field(default_factory=dict)
    events: dict[str, Event] = field(default_factory=dict)
    errors: dict[str, Error] = field(default_factory=dict)

    def get_method(self, name: str) -> Method | None:
        """Look a method up by its (possibly overloaded) name."""
        return self.methods.get(name)

    def get_method_by_signature(self, signature: str) -> Method | None:
        """Look a method up by its canonical signature."""
        return self.methods_by_signature.get(signature)

    def _add_method(self, method: Method) -> None:
        name = _overloaded_name(method.name, self.methods.__contains__)
        self.methods[name] = method
        self.methods_by_signature[method.sig()] = method

    def _add_event(self, event: Event) -> None:
        name = _overloaded_name(event.name, self.events.__contains__)
        self.events[name] = event

    def _add_error(self, error: Error) -> None:
        self.errors[error.name] = error


def _argument(obj: Any) -> ArgumentStr:
    if not isinstance(obj, dict):
        raise AbiError("argument must be an object")
    return ArgumentStr(
        name=obj.get("name") or "",
        type=obj.get("type") or "",
        indexed=bool(obj.get("indexed", False)),
        components=[_argument(item) for item in obj.get("components") or []],
        internal_type=obj.get("internalType") or "",
    )


def _tuple_from(entry: dict, key: str) -> AbiType:
    return new_tuple_type_from_args(_argument(item) for item in entry.get(key) or [])


def new_abi(text: str) -> ABI:
    """Parse a JSON ABI definition."""
    try:
        entries = json.loads(text)
    except json.JSONDecodeError as err:
        raise AbiError(f"invalid abi json: {err}") from err
    if not isinstance(entries, list):
        raise AbiError("abi json must be a list")

    abi = ABI()
    for entry in entries:
        if not isinstance(entry, dict):
            raise AbiError("abi entry must be an object")
        kind = entry.get("type") or ""
        if kind == "constructor":
            if abi.constructor is not None:
                raise AbiError("multiple constructor declaration")
            abi.constructor = Method(inputs=_tuple_from(entry, "inputs"))
        elif kind in ("function", ""):
            const = bool(entry.get("constant", False)) or entry.get(
                "stateMutability"
            ) in ("view", "pure")
            abi._add_method(
                Method(
                    name=entry.get("name") or "",
                    const=const,
                    inputs=_tuple_from(entry, "inputs"),
                    outputs=_tuple_from(entry, "outputs"),
                )
            )
        elif kind == "event":
            abi._add_event(
                Event(
                    name=entry.get("name") or "",
                    inputs=_tuple_from(entry, "inputs"),
                    anonymous=bool(entry.get("anonymous", False)),
                )
            )
        elif kind == "error":
            abi._add_error(
                Error(name=entry.get("name") or "", inputs=_tuple_from(entry, "inputs"))
            )
        elif kind in ("fallback", "receive"):
            continue
        else:
            raise AbiError(f"unknown field type '{kind}'")
    return abi


def parse_method_signature(signature: str) -> tuple[str, AbiType, AbiType]:
    """Split a human readable function into its name, input and output tuples."""
    text = signature.replace("\n", " ").replace("\t", " ")
    if text.startswith("function "):
        text = text[len("function "):]
    text = text.strip()

    output_args = ""
    if "returns" in text:
        match = _FUNC_WITH_RETURN.search(text)
        if match is None:
            raise AbiError("no matches found")
        output_args = match.group(4).strip()
    else:
        match = _FUNC_WITHOUT_RETURN.search(text)
        if match is None:
            raise AbiError("no matches found")
    name = match.group(1).strip()
    input_args = match.group(2).strip()

    inputs = new_type(f"tuple({input_args})")
    outputs = new_type(f"tuple({output_args})")
    return name, inputs, outputs


def new_method(signature: str) -> Method:
    """Build a method from a human readable function signature."""
    name, inputs, outputs = parse_method_signature(signature)
    return Method(name=name, inputs=inputs, outputs=outputs)


def _parse_event_or_error(prefix: str, signature: str) -> tuple[str, AbiType]:
    if not signature.startswith(prefix):
        raise AbiError(f"prefix '{prefix}' not found")
    text = signature[len(prefix):]
    if not text.endswith(")"):
        raise AbiError("failed to parse input, expected 'name(types)'")
    index = text.find("(")
    if index == -1:
        raise AbiError("failed to parse input, expected 'name(types)'")
    return text[:index], new_type("tuple" + text[index:])


def new_event_from_type(name: str, typ: AbiType) -> Event:
    """Build an event from its name and argument tuple."""
    return Event(name=name, inputs=typ)


def new_event(signature: str) -> Event:
    """Build an event from a signature such as ``event Transfer(address indexed a)``."""
    name, typ = _parse_event_or_error("event ", signature)
    return new_event_from_type(name, typ)


def new_error(signature: str) -> Error:
    """Build an error from a signature such as ``error Failed(uint256 code)``."""
    name, typ = _parse_event_or_error("error ", signature)
    return Error(name=name, inputs=typ)


def new_abi_from_list(items: Iterable[str]) -> ABI:
    """Build an ABI from human readable declarations."""
    abi = ABI()
    for item in items:
        if item.startswith("constructor"):
            abi.constructor = Method(inputs=new_type("tuple" + item[len("constructor"):]))
        elif item.startswith("function "):
            abi._add_method(new_method(item))
        elif item.startswith("event "):
            abi._add_event(new_event(item))
        elif item.startswith("error "):
            abi._add_error(new_error(item))
        else:
            raise AbiError("either event or function expected")
    return abi