import pytest

from ethkit.abitype import AbiError, new_type
from ethkit.contract_abi import (
    ABI,
    Error,
    Event,
    Method,
    new_abi,
    new_abi_from_list,
    new_error,
    new_event,
    new_event_from_type,
    new_method,
    parse_method_signature,
)
from ethkit.encode import encode
from ethkit.primitives import Address, Hash, Log


def test_abi_from_json():
    text = """[
        {"name": "abc", "type": "function"},
        {"name": "cde", "type": "event",
         "inputs": [{"indexed": true, "name": "a", "type": "address"}]},
        {"name": "def", "type": "error",
         "inputs": [{"indexed": true, "name": "a", "type": "address"}]},
        {"type": "function", "name": "balanceOf", "constant": true,
         "stateMutability": "view", "payable": false,
         "inputs": [{"type": "address", "name": "owner"}],
         "outputs": [{"type": "uint256", "name": "balance"}]}
    ]"""
    method_abc = Method(name="abc", inputs=new_type("tuple()"), outputs=new_type("tuple()"))
    balance = Method(
        name="balanceOf",
        const=True,
        inputs=new_type("tuple(address owner)"),
        outputs=new_type("tuple(uint256 balance)"),
    )
    expected = ABI(
        events={"cde": Event(name="cde", inputs=new_type("tuple(address indexed a)"))},
        methods={"abc": method_abc, "balanceOf": balance},
        methods_by_signature={"abc()": method_abc, "balanceOf(address)": balance},
        errors={"def": Error(name="def", inputs=new_type("tuple(address indexed a)"))},
    )
    assert new_abi(text) == expected


def test_abi_internal_type():
    text = """[{
        "inputs": [
            {"components": [
                {"internalType": "address", "type": "address"},
                {"internalType": "uint256[4]", "type": "uint256[4]"}],
             "internalType": "struct X", "name": "newSet", "type": "tuple[]"},
            {"internalType": "custom_address", "name": "_to", "type": "address"}
        ],
        "outputs": [], "name": "transfer", "type": "function"
    }]"""
    typ = new_abi(text).get_method("transfer").inputs
    first = typ.tuple_elems[0].elem
    assert first.internal_type == "struct X"
    assert first.elem.tuple_elems[0].elem.internal_type == "address"
    assert first.elem.tuple_elems[1].elem.internal_type == "uint256[4]"
    assert typ.tuple_elems[1].elem.internal_type == "custom_address"


def test_abi_polymorphism():
    text = """[
        {"inputs": [
            {"internalType": "address", "name": "_to", "type": "address"},
            {"internalType": "address", "name": "_token", "type": "address"},
            {"internalType": "uint256", "name": "_amount", "type": "uint256"}],
         "name": "transfer",
         "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
         "stateMutability": "nonpayable", "type": "function"},
        {"inputs": [
            {"internalType": "address", "name": "_to", "type": "address"},
            {"internalType": "uint256", "name": "_amount", "type": "uint256"}],
         "name": "transfer",
         "outputs": [{"internalType": "bool", "name": "", "type": "bool"}],
         "stateMutability": "nonpayable", "type": "function"}
    ]"""
    abi = new_abi(text)
    assert len(abi.methods) == 2
    assert abi.get_method("transfer").sig() == "transfer(address,address,uint256)"
    assert abi.get_method("transfer0").sig() == "transfer(address,uint256)"
    assert abi.get_method_by_signature("transfer(address,address,uint256)").name == "transfer"
    assert abi.get_method_by_signature("transfer(address,uint256)").name == "transfer"


def test_abi_human_readable():
    items = [
        "constructor(string symbol, string name)",
        "function transferFrom(address from, address to, uint256 value)",
        "function balanceOf(address owner) view returns (uint256 balance)",
        "function balanceOf() view returns ()",
        "event Transfer(address indexed from, address indexed to, address value)",
        "error InsufficientBalance(address owner, uint256 balance)",
        "function addPerson(tuple(string name, uint16 age) person)",
        "function addPeople(tuple(string name, uint16 age)[] person)",
        "function getPerson(uint256 id) view returns (tuple(string name, uint16 age))",
        "event PersonAdded(uint256 indexed id, tuple(string name, uint16 age) person)",
    ]
    abi = new_abi_from_list(items)
    abi.methods_by_signature = {}

    empty = new_type("tuple()")
    expected = ABI(
        constructor=Method(inputs=new_type("tuple(string symbol, string name)")),
        methods={
            "transferFrom": Method(
                name="transferFrom",
                inputs=new_type("tuple(address from, address to, uint256 value)"),
                outputs=empty,
            ),
            "balanceOf": Method(
                name="balanceOf",
                inputs=new_type("tuple(address owner)"),
                outputs=new_type("tuple(uint256 balance)"),
            ),
            "balanceOf0": Method(name="balanceOf", inputs=empty, outputs=empty),
            "addPerson": Method(
                name="addPerson",
                inputs=new_type("tuple(tuple(string name, uint16 age) person)"),
                outputs=empty,
            ),
            "addPeople": Method(
                name="addPeople",
                inputs=new_type("tuple(tuple(string name, uint16 age)[] person)"),
                outputs=empty,
            ),
            "getPerson": Method(
                name="getPerson",
                inputs=new_type("tuple(uint256 id)"),
                outputs=new_type("tuple(tuple(string name, uint16 age))"),
            ),
        },
        events={
            "Transfer": Event(
                name="Transfer",
                inputs=new_type(
                    "tuple(address indexed from, address indexed to, address value)"
                ),
            ),
            "PersonAdded": Event(
                name="PersonAdded",
                inputs=new_type(
                    "tuple(uint256 indexed id, tuple(string name, uint16 age) person)"
                ),
            ),
        },
        errors={
            "InsufficientBalance": Error(
                name="InsufficientBalance",
                inputs=new_type("tuple(address owner, uint256 balance)"),
            )
        },
    )
    assert abi == expected


@pytest.mark.parametrize(
    "signature, name, inputs, outputs",
    [
        ("function approve(address to) returns (address)", "approve",
         "tuple(address)", "tuple(address)"),
        ("function approve() returns (address)", "approve", "tuple()", "tuple(address)"),
        ("function approve(address)", "approve", "tuple(address)", "tuple()"),
        (
            "function a(\n\t\t\t\tuint256 b,\n\t\t\t\taddress[] c\n\t\t\t)\n"
            "\t\t\t\treturns\n\t\t\t\t(\n\t\t\t\tuint256[] d\n\t\t\t)",
            "a",
            "tuple(uint256,address[])",
            "tuple(uint256[])",
        ),
    ],
)
def test_parse_method_signature(signature, name, inputs, outputs):
    found_name, found_inputs, found_outputs = parse_method_signature(signature)
    assert found_name == name
    assert str(found_inputs) == inputs
    assert str(found_outputs) == outputs


def test_method_id_and_encode():
    method = new_method("function transfer(address to, uint256 amount)")
    assert method.sig() == "transfer(address,uint256)"
    assert method.id().hex() == "a9059cbb"
    to = Address(b"\x01" + bytes(19))
    data = method.encode([to, 1])
    assert data == bytes.fromhex("a9059cbb") + bytes(12) + bytes(to) + bytes(31) + b"\x01"


def test_method_decode():
    method = new_method("function balanceOf(address owner) view returns (uint256 balance)")
    assert method.decode(bytes(31) + b"\x05") == {"balance": 5}


def test_method_decode_empty_response():
    method = new_method("function balanceOf(address owner) view returns (uint256 balance)")
    with pytest.raises(AbiError, match="empty response"):
        method.decode(b"")


def test_event_id():
    event = new_event("event Transfer(address indexed from, address indexed to, uint256 value)")
    assert event.sig() == "Transfer(address,address,uint256)"
    assert str(event.id()) == (
        "0xddf252ad1be2c89b69c2b068fc378daa952ba7f163c4a11628f55a4df523b3ef"
    )


def test_event_parse_log():
    event = new_event("event A(uint32 val_0, uint8 indexed val_1)")
    log = Log(
        topics=[event.id(), Hash(bytes(31) + b"\x0a")],
        data=encode([1], new_type("tuple(uint32)")),
    )
    assert event.match(log) is True
    assert event.parse_log(log) == {"val_0": 1, "val_1": 10}


def test_event_parse_log_mismatch():
    event = new_event("event A(uint32 val_0)")
    log = Log(topics=[Hash(b"\x01" * 32)], data=bytes(32))
    assert event.match(log) is False
    with pytest.raises(AbiError, match="does not match"):
        event.parse_log(log)


def test_event_match_without_topics():
    event = new_event("event A(uint32 val_0)")
    assert event.match(Log()) is False


def test_new_event_from_type():
    typ = new_type("tuple(uint256 a)")
    assert new_event_from_type("X", typ) == Event(name="X", inputs=typ)


def test_new_event_requires_prefix():
    with pytest.raises(AbiError, match="prefix"):
        new_event("Transfer(address a)")


def test_new_event_requires_parenthesis():
    with pytest.raises(AbiError, match="name\\(types\\)"):
        new_event("event Transfer")


def test_new_error():
    error = new_error("error Failed(uint256 code)")
    assert error == Error(name="Failed", inputs=new_type("tuple(uint256 code)"))


def test_multiple_constructors_rejected():
    text = '[{"type": "constructor"}, {"type": "constructor"}]'
    with pytest.raises(AbiError, match="multiple constructor"):
        new_abi(text)


def test_unknown_field_type_rejected():
    with pytest.raises(AbiError, match="unknown field type"):
        new_abi('[{"type": "something"}]')


def test_fallback_and_receive_ignored():
    abi = new_abi('[{"type": "fallback"}, {"type": "receive"}]')
    assert abi == ABI()


def test_from_list_rejects_unknown():
    with pytest.raises(AbiError, match="either event or function"):
        new_abi_from_list(["modifier onlyOwner()"])