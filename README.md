# ethkit

ethkit is a Python library for working with Ethereum contract data. It provides:

- a parser for Solidity ABI type strings such as `uint256`, `bytes32[]` and `tuple(address a, uint256[2] b)` (`ethkit.abitype`);
- encoding and decoding of values in the contract ABI format (`ethkit.encode`, `ethkit.decode`);
- contract ABIs loaded from JSON or from human-readable signatures, with method calls and event logs (`ethkit.contract_abi`);
- parsing of event logs and their indexed topics (`ethkit.topics`);
- unpacking of `Error(string)` revert reasons (`ethkit.revert`);
- ENS name hashing (`ethkit.ens`);
- a block tracker that follows the chain head and handles reorganisations (`ethkit.blocktracker`);
- lookup of 4-byte selectors in a public signature directory (`ethkit.fourbyte`);
- random ABI types and values, and sample contracts built from them, for testing (`ethkit.randomtypes`).

## Installation

```
pip install ethkit
```

The library depends on `pycryptodome`, which provides Keccak-256. To run the test suite, install the `test` extra and run pytest:

```
pip install "ethkit[test]"
pytest
```

## Basic values

`ethkit.primitives` defines `Address` (20 bytes) and `Hash` (32 bytes). Both are `bytes` subclasses with a `from_hex` constructor, and `str()` gives a `0x`-prefixed hex string. It also has the `Log` and `Block` dataclasses and `keccak256(data)`.

## Types, encoding and decoding

```python
from ethkit.abitype import new_type
from ethkit.encode import encode, encode_hex
from ethkit.decode import decode

t = new_type("tuple(string a, int64 b)")
data = encode({"a": "hello World", "b": 266}, t)
print(encode_hex(data))

values = decode(t, data)
print(values["a"], values["b"])   # hello World 266
```

Tuples decode to dicts. Members without a name are keyed by their position as a string, such as `"0"` or `"1"`. Arrays and slices decode to lists. Integers decode to `int`, addresses to `Address`, and `bytes`, `bytesN` and `function` values to `bytes`.

The encoder accepts lenient input. Numbers may be given as `int`, `float`, a decimal string or a `0x` hex string. Addresses and byte values may be given as hex strings. Tuples may be given as mappings, as sequences, or as dataclass instances. For a dataclass, fields are named by their `abi` metadata entry or by their lower-cased field name, and an `abi` entry of `"-"` skips the field. `decode_struct(t, data, cls)` decodes a tuple straight into a new instance of the dataclass `cls`.

`AbiType.format(True)` prints a type together with its argument names. `type_size(t)` gives the size a type takes in the head of an encoding. `new_type_from_argument` builds a type from an `ArgumentStr` taken from a JSON ABI and keeps its `internalType` names. All parse, encode and decode failures raise `AbiError`, which is a subclass of `ValueError`.

## Contract ABIs

```python
from ethkit.contract_abi import new_abi_from_list

abi = new_abi_from_list([
    "function balanceOf(address owner) view returns (uint256 balance)",
    "event Transfer(address indexed from, address indexed to, uint256 value)",
])

method = abi.get_method("balanceOf")
print(method.sig())          # balanceOf(address)
calldata = method.encode({"owner": "0xdbb881a51CD4023E4400CEF3ef73046743f08da3"})
```

`new_abi(text)` reads a JSON ABI in the format the Solidity compiler produces. Overloaded methods and events are stored under their name, then under the name with a suffix `0`, `1` and so on. `ABI.get_method_by_signature` looks a method up by its full signature. `Method.id()` gives the 4-byte selector and `Method.decode(data)` decodes return data.

`new_method`, `new_event` and `new_error` parse single declarations. `Event.id()` gives the event's topic hash. `Event.match(log)` and `Event.parse_log(log)` check and decode a `Log`. The lower-level helpers `parse_log`, `parse_topics`, `parse_topic` and `encode_topic` are in `ethkit.topics`.

## Revert reasons

```python
from ethkit.encode import decode_hex
from ethkit.revert import unpack_revert_error

raw = decode_hex(
    "08c379a0"
    "0000000000000000000000000000000000000000000000000000000000000020"
    "000000000000000000000000000000000000000000000000000000000000000d"
    "72657665727420726561736f6e00000000000000000000000000000000000000"
)
print(unpack_revert_error(raw))   # revert reason
```

## ENS name hashing

```python
from ethkit.ens import name_hash

print(name_hash("eth"))
# 0x93cdeb708b7545dc668eb9280176169d1c33cfd8ed6f04690a0bcc88a93fc4ae
```

## Block tracking

`BlockTracker` keeps a window of recent blocks from any object that has the `BlockProvider` methods `get_block_by_hash(hash, full)` and `get_block_by_number(number, full)`. The window holds 10 blocks by default; set `Config(max_block_backlog=...)` to change it. The tracker reports changes as `BlockEvent` objects with `added` and `removed` lists. When a new block does not continue the stored chain, the tracker rolls back to the common ancestor and fetches the missing parents. If it cannot reconcile the chain, it raises `BlockTrackerError`.

```python
from ethkit.blocktracker import BlockTracker

tracker = BlockTracker(provider)
tracker.init()                    # load recent blocks from the provider
events = tracker.subscribe()      # a queue.Queue of BlockEvent
tracker.handle_reconcile(new_block)
event = events.get_nowait()
```

`start()` runs the configured tracker in the calling thread until `close()` is called. By default this is `JSONBlockTracker`, which polls `get_block_by_number("latest", False)` once a second. A subscriber queue holds one event. Events that arrive while it is full are dropped.

## Selector lookup

`ethkit.fourbyte.resolve("0xddf252ad")` asks a public signature directory for the text signature of a selector and returns `""` if the selector is unknown. `resolve_bytes` takes raw bytes instead. Both need network access.

## Random types for testing

`ethkit.randomtypes` has three functions:

- `random_type(rng)` returns a random type signature.
- `generate_random_value(t, rng)` returns a value that encodes as type `t`.
- `generate_contract(t)` returns the source of a sample contract whose `set` function takes and returns the members of the tuple `t`.

## What it does not do

ethkit does not include a JSON-RPC client. You supply the block provider yourself, and nothing in the package sends transactions or calls contracts on a node. It does not sign transactions, manage keys or compile contracts. Its ENS support is limited to computing name hashes and does not resolve names to addresses.