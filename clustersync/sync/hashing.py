"""Stable content hash of synced data."""

from __future__ import annotations

import hashlib
import json
from typing import Any

_GO_ESCAPES = {
    "<": "\\u003c",
    ">": "\\u003e",
    "&": "\\u0026",
    "\u2028": "\\u2028",
    "\u2029": "\\u2029",
}


def _marshal(obj: Any) -> bytes:
    text = json.dumps(obj, separators=(",", ":"), ensure_ascii=False, sort_keys=True)
    for char, escape in _GO_ESCAPES.items():
        text = text.replace(char, escape)
    return text.encode("utf-8")


def spec_hash(obj: Any) -> str:
    """Hex SHA-256 of the JSON encoding of obj, rendered as a decimal byte list."""
    data = _marshal(obj)
    rendered = "[" + " ".join(str(byte) for byte in data) + "]"
    return hashlib.sha256(rendered.encode("ascii")).hexdigest()