"""Soft decoding of notarization state bytes, and the writers' encoders.

``decode_state`` never raises: a payload written by a buggy producer must
show up as a note in the verdict, not crash the read path.
"""

from __future__ import annotations

import json
from typing import Any

from dpplink.core.hasher import compact_json_bytes
from dpplink.models.state import ContentReference, DecodedState, StatePayload


def decode_state(data: bytes) -> DecodedState:
    """UTF-8 decode then JSON parse *data* into a StatePayload."""
    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        return DecodedState(error=f"state is not valid UTF-8: {exc.reason}")

    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as exc:
        return DecodedState(error=f"state is not valid JSON: {exc.msg}")

    if not isinstance(parsed, dict):
        return DecodedState(error=f"state JSON is a {type(parsed).__name__}, not an object")

    return DecodedState(payload=StatePayload(raw=parsed))


def encode_state(payload: dict[str, Any]) -> bytes:
    return compact_json_bytes(payload)


def dynamic_state(cid: ContentReference | str, seq: int, updated_at: str) -> bytes:
    """State bytes for a Dynamic notarization: ``{latest_cid, seq, updated_at}``."""
    return encode_state({"latest_cid": str(cid), "seq": seq, "updated_at": updated_at})


def locked_state(cid: ContentReference | str, created_at: str) -> bytes:
    """State bytes for a Locked snapshot: ``{cid, created_at}``."""
    return encode_state({"cid": str(cid), "created_at": created_at})
