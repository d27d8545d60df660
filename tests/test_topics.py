import pytest

from ethkit.abitype import AbiError, new_type
from ethkit.encode import encode
from ethkit.primitives import Address, Hash, Log
from ethkit.topics import encode_topic, parse_log, parse_topic, parse_topics


@pytest.mark.parametrize(
    "type_str, value",
    [
        ("bool", True),
        ("bool", False),
        ("uint64", 20),
        ("uint256", 1000000),
        ("address", Address(b"\x01" + bytes(19))),
    ],
)
def test_topic_encoding_round_trip(type_str, value):
    typ = new_type(type_str)
    topic = encode_topic(typ, value)
    assert parse_topic(typ, topic) == value


def test_encode_topic_values():
    assert encode_topic(new_type("bool"), True) == Hash(bytes(31) + b"\x01")
    assert encode_topic(new_type("bool"), False) == Hash(bytes(32))
    assert encode_topic(new_type("uint8"), 10) == Hash(bytes(31) + b"\x0a")


def test_encode_topic_unsupported_type():
    with pytest.raises(AbiError):
        encode_topic(new_type("string"), "abc")


def test_encode_topic_bool_needs_bool():
    with pytest.raises(AbiError):
        encode_topic(new_type("bool"), 1)


def test_parse_topic_bad_boolean():
    with pytest.raises(AbiError, match="boolean"):
        parse_topic(new_type("bool"), Hash(bytes(31) + b"\x02"))


def test_parse_topic_fixed_bytes():
    assert parse_topic(new_type("bytes1"), Hash(b"\x01" + bytes(31))) == b"\x01"


def test_parse_topic_unsupported():
    with pytest.raises(AbiError, match="not supported"):
        parse_topic(new_type("string"), Hash())


def test_parse_topics_requires_tuple():
    with pytest.raises(AbiError, match="tuple"):
        parse_topics(new_type("uint8"), [Hash()])


def test_parse_topics_bad_length():
    with pytest.raises(AbiError, match="bad length"):
        parse_topics(new_type("tuple(uint8 a)"), [])


def test_parse_log_uint_fields():
    args = new_type("tuple(uint32 val_0, uint8 indexed val_1)")
    log = Log(
        topics=[Hash(b"\xaa" * 32), encode_topic(new_type("uint8"), 10)],
        data=encode([1], new_type("tuple(uint32)")),
    )
    assert parse_log(args, log) == {"val_0": 1, "val_1": 10}


def test_parse_log_fixed_bytes_fields():
    args = new_type("tuple(bytes1 val_0, bytes1 indexed val_1)")
    log = Log(
        topics=[Hash(b"\xaa" * 32), Hash(b"\x01" + bytes(31))],
        data=encode([b"\x01"], new_type("tuple(bytes1)")),
    )
    assert parse_log(args, log) == {"val_0": b"\x01", "val_1": b"\x01"}


def test_parse_log_only_indexed():
    args = new_type("tuple(bool indexed flag)")
    log = Log(topics=[Hash(), Hash(bytes(31) + b"\x01")])
    assert parse_log(args, log) == {"flag": True}