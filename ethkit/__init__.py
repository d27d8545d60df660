"""Ethereum ABI encoding and decoding, log parsing, revert reasons, ENS hashing and block tracking."""

__version__ = "0.1.0"