"""Canonical serialization and hashing for ledger writes.

State payloads are written as compact JSON (insertion order preserved,
matching what JSON.stringify producers put on chain). Signed ledger
operations use sorted-key canonical JSON so signer and verifier agree on
the exact bytes.
"""

from __future__ import annotations

import hashlib
import json
import secrets
from typing import Any


def canonical_json_bytes(obj: Any) -> bytes:
    """Produce canonical JSON bytes: deterministic, sorted, compact."""
    return json.dumps(
        obj, sort_keys=True, separators=(",", ":"), ensure_ascii=True
    ).encode("utf-8")


def compact_json_bytes(obj: Any) -> bytes:
    """Compact JSON in insertion order, UTF-8 encoded."""
    return json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")


def sha256_hex(data: bytes) -> str:
    """Return the SHA-256 hex digest of raw bytes."""
    return hashlib.sha256(data).hexdigest()


def new_record_id(kind: str, state: bytes, created_at: int) -> str:
    """Mint a ledger object ID: ``0x`` + SHA-256 over creation content and a nonce."""
    seed = {
        "kind": kind,
        "state_sha256": sha256_hex(state),
        "created_at": created_at,
        "nonce": secrets.token_hex(16),
    }
    return "0x" + sha256_hex(canonical_json_bytes(seed))


def update_digest_payload(record_id: str, version: int, state: bytes) -> bytes:
    """Bytes an owner signs to replace the state of a Dynamic record."""
    return canonical_json_bytes(
        {
            "op": "update_state",
            "record_id": record_id,
            "version": version,
            "state_sha256": sha256_hex(state),
        }
    )


def metadata_digest_payload(record_id: str, metadata: str | None) -> bytes:
    """Bytes an owner signs to change the updatable metadata."""
    return canonical_json_bytes(
        {"op": "update_metadata", "record_id": record_id, "metadata": metadata}
    )
