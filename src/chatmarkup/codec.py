"""Base64 helpers for custom-element attribute payloads.

Text is encoded as UTF-8 beneath a standard (padded, non URL-safe) base64
alphabet. JSON payloads use compact separators and keep non-ASCII
characters, matching what a browser ``JSON.stringify`` producer emits.
"""

from __future__ import annotations

import base64
import json
from typing import Any


def encode_base64_text(value: str) -> str:
    return base64.b64encode(value.encode("utf-8")).decode("ascii")


def decode_base64_text(value: str) -> str:
    return base64.b64decode(value, validate=True).decode("utf-8")


def encode_base64_json(value: Any) -> str:
    return encode_base64_text(to_json(value))


def decode_base64_json(value: str) -> Any:
    return json.loads(decode_base64_text(value))


def to_json(value: Any) -> str:
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"), allow_nan=False)
