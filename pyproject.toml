[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ethkit"
version = "0.1.0"
description = "Ethereum contract ABI encoding and decoding, event log parsing, ENS name hashing and a reorg-aware block tracker."
requires-python = ">=3.10"
keywords = ["ethereum", "abi", "solidity", "evm", "ens", "keccak", "blockchain"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]
dependencies = [
    "pycryptodome",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["ethkit"]

[tool.hatch.build.targets.sdist]
include = ["ethkit", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]
