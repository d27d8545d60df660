"""Lookup of method and event selectors in the public signature directory."""

from __future__ import annotations

import json
import urllib.request

FOUR_BYTE_URL = "https://www.4byte.directory"


def resolve(signature: str) -> str:
    """Return the text signature for a hex selector, or ``""`` if unknown."""
    return _get("/api/v1/signatures/?hex_signature=" + signature)


def resolve_bytes(data: bytes) -> str:
    """Return the text signature for a selector given as bytes."""
    return resolve(bytes(data).hex())


def _get(path: str) -> str:
    with urllib.request.urlopen(FOUR_BYTE_URL + path) as response:
        payload = json.loads(response.read())
    if not isinstance(payload, dict):
        raise ValueError("unexpected response from signature directory")
    results = next(
        (value for key, value in payload.items() if key.lower() == "results"), None
    )
    if not results:
        return ""
    return results[0].get("text_signature", "")