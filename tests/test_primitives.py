import pytest

from ethkit.primitives import Address, Block, Hash, Log, keccak256


def test_keccak_empty_input():
    assert (
        keccak256(b"").hex()
        == "c5d2460186f7233c927e7db2dcc703c0e500b653ca82273b7bfad8045d85a470"
    )


def test_keccak_transfer_selector():
    assert keccak256(b"Transfer(address,address,uint256)")[:4].hex() == "ddf252ad"


def test_keccak_digest_length():
    assert len(keccak256(b"some data")) == 32


def test_address_default_is_zero():
    assert Address() == bytes(20)


def test_address_hex_round_trip():
    text = "0x" + "ab" * 20
    addr = Address.from_hex(text)
    assert str(addr) == text
    assert Address.from_hex(str(addr)) == addr


def test_address_from_hex_without_prefix():
    assert Address.from_hex("01" * 20) == bytes([1] * 20)


def test_address_wrong_length():
    with pytest.raises(ValueError):
        Address(b"\x01")


def test_address_bad_hex():
    with pytest.raises(ValueError):
        Address.from_hex("0xzz")


def test_address_rejects_int():
    with pytest.raises(TypeError):
        Address(20)


def test_hash_round_trip():
    digest = keccak256(b"abc")
    h = Hash(digest)
    assert Hash.from_hex(str(h)) == h
    assert str(h) == "0x" + digest.hex()


def test_hash_wrong_length():
    with pytest.raises(ValueError):
        Hash(bytes(20))


def test_log_defaults():
    log = Log()
    assert log.topics == []
    assert log.data == b""
    assert log.address == Address()


def test_block_copy_is_independent():
    block = Block(number=3, hash=Hash(keccak256(b"x")), transactions=[1, 2])
    clone = block.copy()
    assert clone == block
    clone.transactions.append(3)
    clone.number = 4
    assert block.transactions == [1, 2]
    assert block.number == 3