"""ABI type model and the parser for textual ABI type signatures."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator, NamedTuple


class AbiError(ValueError):
    """Raised for malformed ABI types, data or definitions."""


class Kind(Enum):
    """The kind of an ABI type."""

    BOOL = "Bool"
    UINT = "Uint"
    INT = "Int"
    STRING = "String"
    ARRAY = "Array"
    SLICE = "Slice"
    ADDRESS = "Address"
    BYTES = "Bytes"
    FIXED_BYTES = "FixedBytes"
    FIXED_POINT = "FixedPoint"
    TUPLE = "Tuple"
    FUNCTION = "Function"

    def __str__(self) -> str:
        return self.value


@dataclass
class TupleElem:
    """A named element of a tuple type."""

    name: str
    elem: AbiType
    indexed: bool = False


@dataclass
class ArgumentStr:
    """An argument as it appears in a JSON ABI definition."""

    name: str = ""
    type: str = ""
    indexed: bool = False
    components: list[ArgumentStr] = field(default_factory=list)
    internal_type: str = ""


@dataclass
class AbiType:
    """A parsed ABI type."""

    kind: Kind
    size: int = 0
    elem: AbiType | None = None
    tuple_elems: list[TupleElem] = field(default_factory=list)
    internal_type: str = ""

    def format(self, include_args: bool) -> str:
        """Render the type; with ``include_args`` tuple element names are kept."""
        kind = self.kind
        if kind is Kind.TUPLE:
            parts = []
            for item in self.tuple_elems:
                text = item.elem.format(include_args)
                if item.indexed:
                    text += " indexed"
                if include_args and item.name:
                    text += " " + item.name
                parts.append(text)
            return f"tuple({','.join(parts)})"
        if kind is Kind.ARRAY:
            return f"{self.elem.format(include_args)}[{self.size}]"
        if kind is Kind.SLICE:
            return f"{self.elem.format(include_args)}[]"
        if kind is Kind.FIXED_BYTES:
            return f"bytes{self.size}"
        if kind is Kind.UINT:
            return f"uint{self.size}"
        if kind is Kind.INT:
            return f"int{self.size}"
        simple = {
            Kind.BYTES: "bytes",
            Kind.STRING: "string",
            Kind.BOOL: "bool",
            Kind.ADDRESS: "address",
            Kind.FUNCTION: "function",
        }
        if kind in simple:
            return simple[kind]
        raise AbiError(f"abi type not supported: {kind}")

    def __str__(self) -> str:
        return self.format(False)

    def is_variable_input(self) -> bool:
        """Whether the encoding starts with a length word."""
        return self.kind in (Kind.SLICE, Kind.BYTES, Kind.STRING)

    def is_dynamic(self) -> bool:
        """Whether the encoded size depends on the value."""
        if self.kind is Kind.TUPLE:
            return any(item.elem.is_dynamic() for item in self.tuple_elems)
        if self.kind in (Kind.STRING, Kind.BYTES, Kind.SLICE):
            return True
        return self.kind is Kind.ARRAY and self.elem.is_dynamic()


def new_tuple_type(inputs) -> AbiType:
    """Build a tuple type from tuple elements."""
    return AbiType(Kind.TUPLE, tuple_elems=list(inputs))


def new_tuple_type_from_args(inputs) -> AbiType:
    """Build a tuple type from JSON ABI arguments."""
    return new_tuple_type(
        TupleElem(name=arg.name, elem=new_type_from_argument(arg), indexed=arg.indexed)
        for arg in inputs
    )


def _argument_type_string(arg: ArgumentStr) -> str:
    if not arg.type.startswith("tuple"):
        return arg.type
    if not arg.components:
        return "tuple()"
    parts = []
    for component in arg.components:
        text = _argument_type_string(component)
        if component.indexed:
            parts.append(f"{text} indexed {component.name}")
        else:
            parts.append(f"{text} {component.name}")
    return f"tuple({','.join(parts)}){arg.type[len('tuple'):]}"


def _fill_in(typ: AbiType, arg: ArgumentStr) -> None:
    typ.internal_type = arg.internal_type
    if not arg.components:
        return
    # tuple()[] and tuple()[2] carry their components on the array type
    while typ.kind is not Kind.TUPLE:
        if typ.kind not in (Kind.ARRAY, Kind.SLICE):
            return
        typ = typ.elem
    if len(arg.components) != len(typ.tuple_elems):
        return
    for item, component in zip(typ.tuple_elems, arg.components):
        _fill_in(item.elem, component)


def new_type_from_argument(arg: ArgumentStr) -> AbiType:
    """Parse a type from a JSON ABI argument, keeping internal type names."""
    typ = new_type(_argument_type_string(arg))
    _fill_in(typ, arg)
    return typ


def type_size(t: AbiType) -> int:
    """Size in bytes of the head slot(s) the type takes in an encoding."""
    if t.kind is Kind.ARRAY and not t.elem.is_dynamic():
        if t.elem.kind in (Kind.ARRAY, Kind.TUPLE):
            return t.size * type_size(t.elem)
        return t.size * 32
    if t.kind is Kind.TUPLE and not t.is_dynamic():
        return sum(type_size(item.elem) for item in t.tuple_elems)
    return 32


class _Tok(Enum):
    EOF = "eof"
    STR = "string"
    NUMBER = "number"
    TUPLE = "tuple"
    LPAREN = "("
    RPAREN = ")"
    LBRACKET = "["
    RBRACKET = "]"
    COMMA = ","
    INDEXED = "indexed"
    INVALID = "<invalid>"


class _Token(NamedTuple):
    kind: _Tok
    literal: str = ""


_PUNCTUATION = {
    ",": _Tok.COMMA,
    "(": _Tok.LPAREN,
    ")": _Tok.RPAREN,
    "[": _Tok.LBRACKET,
    "]": _Tok.RBRACKET,
}
_LETTERS = frozenset("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ_")
_DIGITS = frozenset("0123456789")
_WHITESPACE = frozenset(" \t\n\r")


def _tokenize(text: str) -> Iterator[_Token]:
    pos, end = 0, len(text)
    while True:
        while pos < end and text[pos] in _WHITESPACE:
            pos += 1
        if pos >= end:
            break
        ch = text[pos]
        if ch in _PUNCTUATION:
            yield _Token(_PUNCTUATION[ch])
            pos += 1
        elif ch in _LETTERS:
            start = pos
            while pos < end and (text[pos] in _LETTERS or text[pos] in _DIGITS):
                pos += 1
            word = text[start:pos]
            if word == "tuple":
                yield _Token(_Tok.TUPLE, word)
            elif word == "indexed":
                yield _Token(_Tok.INDEXED, word)
            else:
                yield _Token(_Tok.STR, word)
        elif ch in _DIGITS:
            start = pos
            while pos < end and text[pos] in _DIGITS:
                pos += 1
            yield _Token(_Tok.NUMBER, text[start:pos])
        else:
            yield _Token(_Tok.INVALID)
            pos += 1
    while True:
        yield _Token(_Tok.EOF)


class _Parser:
    def __init__(self, text: str) -> None:
        self._tokens = _tokenize(text)
        self.current = _Token(_Tok.EOF)
        self.peek = next(self._tokens)

    def advance(self) -> _Token:
        self.current = self.peek
        self.peek = next(self._tokens)
        return self.current


def _expected(kind: _Tok) -> AbiError:
    return AbiError(f"expected token {kind.value}")


def _not_expected(kind: _Tok) -> AbiError:
    return AbiError(f"token '{kind.value}' not expected")


_MAX_ARRAY_SIZE = 2**32 - 1


def _read_type(parser: _Parser) -> AbiType:
    tok = parser.advance()
    is_tuple = tok.kind is _Tok.LPAREN
    if tok.kind is _Tok.TUPLE:
        if parser.advance().kind is not _Tok.LPAREN:
            raise _expected(_Tok.LPAREN)
        is_tuple = True

    if is_tuple:
        elems: list[TupleElem] = []
        while True:
            try:
                elem = _read_type(parser)
            except AbiError as err:
                if parser.current.kind is _Tok.RPAREN and not elems:
                    break  # empty tuple
                raise AbiError(f"failed to decode type: {err}") from err

            name, indexed = "", False
            if parser.peek.kind is _Tok.STR:
                name = parser.advance().literal
            elif parser.peek.kind is _Tok.INDEXED:
                parser.advance()
                indexed = True
                if parser.peek.kind is _Tok.STR:
                    name = parser.advance().literal
            elems.append(TupleElem(name=name, elem=elem, indexed=indexed))

            following = parser.advance()
            if following.kind is _Tok.COMMA:
                continue
            if following.kind is _Tok.RPAREN:
                break
            raise _not_expected(following.kind)
        typ = AbiType(Kind.TUPLE, tuple_elems=elems)
    elif tok.kind is not _Tok.STR:
        raise _expected(_Tok.STR)
    else:
        typ = _decode_simple_type(tok.literal)

    while parser.peek.kind is _Tok.LBRACKET:
        parser.advance()
        inner = parser.advance()
        if inner.kind is _Tok.RBRACKET:
            typ = AbiType(Kind.SLICE, elem=typ)
        elif inner.kind is _Tok.NUMBER:
            size = int(inner.literal)
            if size > _MAX_ARRAY_SIZE:
                raise AbiError(f"failed to read array size '{inner.literal}': out of range")
            typ = AbiType(Kind.ARRAY, size=size, elem=typ)
            if parser.advance().kind is not _Tok.RBRACKET:
                raise _expected(_Tok.RBRACKET)
        else:
            raise _not_expected(inner.kind)
    return typ


_SIMPLE_TYPE = re.compile(r"([A-Za-z]+)([0-9]*)")

_PLAIN_KINDS = {
    "string": Kind.STRING,
    "bool": Kind.BOOL,
}


def _decode_simple_type(text: str) -> AbiType:
    match = _SIMPLE_TYPE.fullmatch(text)
    if match is None:
        raise AbiError(
            f"type format is incorrect. Expected 'type''bytes' but found '{text}'"
        )
    name, digits = match.groups()
    has_size = digits != ""
    size = int(digits) if has_size else 0

    if name in ("int", "uint"):
        if not has_size:
            size = 256
        if size % 8 != 0:
            raise AbiError("number of bytes has to be M mod 8")
        return AbiType(Kind.UINT if name == "uint" else Kind.INT, size=size)
    if name != "bytes" and has_size:
        raise AbiError(f"type {name} does not expect bytes")

    if name == "byte":
        name, size = "bytes", 1
    if name == "bytes":
        if size == 0:
            return AbiType(Kind.BYTES)
        return AbiType(Kind.FIXED_BYTES, size=size)
    if name in _PLAIN_KINDS:
        return AbiType(_PLAIN_KINDS[name])
    if name == "address":
        return AbiType(Kind.ADDRESS, size=20)
    if name == "function":
        return AbiType(Kind.FUNCTION, size=24)
    raise AbiError(f"unknown type '{name}'")


def new_type(s: str) -> AbiType:
    """Parse a type from its textual signature, e.g. ``tuple(uint256 a)[]``."""
    return _read_type(_Parser(s))