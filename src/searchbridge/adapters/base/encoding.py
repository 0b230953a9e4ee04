"""JSON encoding shared by the HTTP adapters.

Documents may be dicts, pydantic models, dataclasses or anything
``pydantic_core.to_jsonable_python`` understands. Encoding is compact and
key-order preserving so a document read back from a backend re-encodes to
the bytes that were sent.
"""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import quote

from pydantic_core import to_jsonable_python


def to_jsonable(value: Any) -> Any:
    return to_jsonable_python(value)


def encode_json(value: Any) -> bytes:
    return json.dumps(to_jsonable_python(value), separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def path_segment(value: str) -> str:
    """Percent-encode *value* for use as one URL path segment, including any ``/``."""
    return quote(value, safe="")
