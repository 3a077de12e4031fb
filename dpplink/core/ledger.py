"""Notarization ledger: backend protocol and a SQLite implementation.

The resolver only ever calls ``read_by_id``. Writes come from the
out-of-band CLI and follow the notarization lifecycles:

- Dynamic: created once; state replaced wholesale by its owner any number
  of times. Every accepted replacement bumps ``state_version_count`` by
  one, moves ``last_state_change_at``, and appends to the version history.
- Locked: created once with its final state. No update path exists.

Design:
- ``notarizations`` holds the current view of every record.
- ``notarization_versions`` is append-only (no UPDATE, no DELETE).
- Owner updates are Ed25519-signed over canonical bytes and verified
  against the public key recorded at creation.
- Timestamps are stored as integer epoch seconds.
"""

from __future__ import annotations

import json
import logging
import re
import sqlite3
import time
from collections.abc import Callable
from pathlib import Path
from typing import Protocol, runtime_checkable

from dpplink.bridge.signer import Signer, verify_signature
from dpplink.core.errors import LedgerUnavailableError, RecordNotFoundError
from dpplink.core.hasher import (
    metadata_digest_payload,
    new_record_id,
    sha256_hex,
    update_digest_payload,
)
from dpplink.models.records import (
    AnyRecord,
    DeleteLock,
    ImmutableRecord,
    LedgerReceipt,
    MutableRecord,
    RecordKind,
)

logger = logging.getLogger(__name__)

_CANONICAL_ID = re.compile(r"^0x[0-9a-fA-F]{64}$")


# ---------------------------------------------------------------------------
# DDL
# ---------------------------------------------------------------------------

_CREATE_NOTARIZATIONS = """
CREATE TABLE IF NOT EXISTS notarizations (
    record_id             TEXT PRIMARY KEY,
    kind                  TEXT NOT NULL,
    state                 BLOB NOT NULL,
    state_metadata        TEXT,
    description           TEXT,
    updatable_metadata    TEXT,
    owner                 TEXT,
    owner_public_key      TEXT,
    delete_lock_json      TEXT NOT NULL DEFAULT '{}',
    state_version_count   INTEGER NOT NULL,
    created_at            INTEGER NOT NULL,
    last_state_change_at  INTEGER
);
"""

_CREATE_VERSIONS = """
CREATE TABLE IF NOT EXISTS notarization_versions (
    id              INTEGER PRIMARY KEY AUTOINCREMENT,
    record_id       TEXT NOT NULL REFERENCES notarizations(record_id),
    version         INTEGER NOT NULL,
    state           BLOB NOT NULL,
    state_metadata  TEXT,
    digest          TEXT NOT NULL UNIQUE,
    recorded_at     INTEGER NOT NULL,
    UNIQUE (record_id, version)
);
"""


class ImmutableRecordError(RuntimeError):
    """Raised on any attempt to modify a Locked notarization."""


class OwnershipError(RuntimeError):
    """Raised when an update is not signed by the record's owner."""


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class LedgerBackend(Protocol):
    """What the resolver and the CLI need from a notarization ledger.

    ``read_by_id`` must raise ``RecordNotFoundError`` for unknown IDs and
    ``LedgerUnavailableError`` for transient failures.
    """

    def create_mutable(
        self,
        state: bytes,
        *,
        signer: Signer,
        description: str | None = None,
        metadata: str | None = None,
        state_metadata: str | None = None,
    ) -> str: ...

    def update_mutable_state(
        self,
        record_id: str,
        state: bytes,
        *,
        signer: Signer,
        state_metadata: str | None = None,
    ) -> LedgerReceipt: ...

    def update_mutable_metadata(
        self, record_id: str, metadata: str | None, *, signer: Signer
    ) -> LedgerReceipt: ...

    def create_immutable(
        self,
        state: bytes,
        *,
        description: str | None = None,
        delete_lock: DeleteLock | None = None,
        state_metadata: str | None = None,
    ) -> str: ...

    def read_by_id(self, record_id: str) -> AnyRecord: ...


# ---------------------------------------------------------------------------
# SQLite implementation
# ---------------------------------------------------------------------------


class SqliteNotarizationLedger:
    """Local notarization ledger backed by SQLite.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    clock:
        Returns the current time in epoch seconds. Injectable for tests.
    """

    def __init__(self, db_path: Path, *, clock: Callable[[], int] | None = None) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._clock = clock or (lambda: int(time.time()))
        self._init_schema()

    @property
    def db_path(self) -> Path:
        return self._db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        conn.execute("PRAGMA foreign_keys=ON")
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_NOTARIZATIONS)
            conn.execute(_CREATE_VERSIONS)
            conn.commit()

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    def create_mutable(
        self,
        state: bytes,
        *,
        signer: Signer,
        description: str | None = None,
        metadata: str | None = None,
        state_metadata: str | None = None,
    ) -> str:
        """Create a Dynamic notarization owned by *signer*. Returns its ID."""
        now = self._clock()
        record_id = new_record_id(RecordKind.DYNAMIC.value, state, now)
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO notarizations
                    (record_id, kind, state, state_metadata, description,
                     updatable_metadata, owner, owner_public_key,
                     state_version_count, created_at, last_state_change_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, 1, ?, ?)
                """,
                (
                    record_id,
                    RecordKind.DYNAMIC.value,
                    state,
                    state_metadata,
                    description,
                    metadata,
                    signer.address(),
                    signer.public_key().hex(),
                    now,
                    now,
                ),
            )
            self._append_version(conn, record_id, 1, state, state_metadata, now)
            conn.commit()
        logger.info("Created dynamic notarization %s (owner=%s)", record_id, signer.address())
        return record_id

    def create_immutable(
        self,
        state: bytes,
        *,
        description: str | None = None,
        delete_lock: DeleteLock | None = None,
        state_metadata: str | None = None,
    ) -> str:
        """Create a Locked notarization. Its state can never change."""
        now = self._clock()
        record_id = new_record_id(RecordKind.LOCKED.value, state, now)
        lock = delete_lock or DeleteLock.none()
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO notarizations
                    (record_id, kind, state, state_metadata, description,
                     delete_lock_json, state_version_count, created_at)
                VALUES (?, ?, ?, ?, ?, ?, 1, ?)
                """,
                (
                    record_id,
                    RecordKind.LOCKED.value,
                    state,
                    state_metadata,
                    description,
                    lock.model_dump_json(),
                    now,
                ),
            )
            self._append_version(conn, record_id, 1, state, state_metadata, now)
            conn.commit()
        logger.info("Created locked notarization %s", record_id)
        return record_id

    # ------------------------------------------------------------------
    # Update (Dynamic only)
    # ------------------------------------------------------------------

    def update_mutable_state(
        self,
        record_id: str,
        state: bytes,
        *,
        signer: Signer,
        state_metadata: str | None = None,
    ) -> LedgerReceipt:
        """Replace the full state of a Dynamic record as a new version."""
        with self._connect() as conn:
            row = self._fetch_row(conn, record_id)
            self._authorize(row, signer)

            version = row["state_version_count"] + 1
            payload = update_digest_payload(record_id, version, state)
            signature = signer.sign(payload)
            if not verify_signature(payload, signature, bytes.fromhex(row["owner_public_key"])):
                raise OwnershipError(f"Signature rejected for update of {record_id}.")

            now = self._clock()
            conn.execute(
                """
                UPDATE notarizations
                   SET state = ?, state_metadata = ?,
                       state_version_count = ?, last_state_change_at = ?
                 WHERE record_id = ?
                """,
                (state, state_metadata, version, now, record_id),
            )
            digest = self._append_version(
                conn, record_id, version, state, state_metadata, now, signature=signature
            )
            conn.commit()

        logger.info("Updated %s to state version %d", record_id, version)
        return LedgerReceipt(record_id=record_id, version=version, digest=digest, timestamp=now)

    def update_mutable_metadata(
        self, record_id: str, metadata: str | None, *, signer: Signer
    ) -> LedgerReceipt:
        """Change the updatable metadata. State and version are untouched."""
        with self._connect() as conn:
            row = self._fetch_row(conn, record_id)
            self._authorize(row, signer)

            payload = metadata_digest_payload(record_id, metadata)
            signature = signer.sign(payload)
            if not verify_signature(payload, signature, bytes.fromhex(row["owner_public_key"])):
                raise OwnershipError(f"Signature rejected for metadata of {record_id}.")

            conn.execute(
                "UPDATE notarizations SET updatable_metadata = ? WHERE record_id = ?",
                (metadata, record_id),
            )
            conn.commit()

        return LedgerReceipt(
            record_id=record_id,
            version=row["state_version_count"],
            digest=sha256_hex(payload + signature),
            timestamp=self._clock(),
        )

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    def read_by_id(self, record_id: str) -> AnyRecord:
        """Return the current view of a record.

        Raises ``RecordNotFoundError`` for unknown or malformed IDs and
        ``LedgerUnavailableError`` when the database cannot be queried.
        """
        if not _CANONICAL_ID.match(record_id):
            raise RecordNotFoundError(record_id)
        try:
            with self._connect() as conn:
                row = conn.execute(
                    "SELECT * FROM notarizations WHERE record_id = ?", (record_id,)
                ).fetchone()
        except sqlite3.Error as exc:
            raise LedgerUnavailableError(f"Ledger query failed: {exc}") from exc
        if row is None:
            raise RecordNotFoundError(record_id)
        return self._row_to_record(row)

    def state_history(self, record_id: str) -> list[LedgerReceipt]:
        """Every accepted state version of a record, oldest first."""
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT record_id, version, digest, recorded_at
                  FROM notarization_versions
                 WHERE record_id = ?
                 ORDER BY version ASC
                """,
                (record_id,),
            ).fetchall()
        return [
            LedgerReceipt(
                record_id=row["record_id"],
                version=row["version"],
                digest=row["digest"],
                timestamp=row["recorded_at"],
            )
            for row in rows
        ]

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _fetch_row(conn: sqlite3.Connection, record_id: str) -> sqlite3.Row:
        row = conn.execute(
            "SELECT * FROM notarizations WHERE record_id = ?", (record_id,)
        ).fetchone()
        if row is None:
            raise RecordNotFoundError(record_id)
        return row

    @staticmethod
    def _authorize(row: sqlite3.Row, signer: Signer) -> None:
        if row["kind"] != RecordKind.DYNAMIC.value:
            raise ImmutableRecordError(
                f"Notarization {row['record_id']} is locked; its state cannot change."
            )
        if signer.address() != row["owner"]:
            raise OwnershipError(
                f"Signer {signer.address()} does not own {row['record_id']} "
                f"(owner {row['owner']})."
            )

    @staticmethod
    def _append_version(
        conn: sqlite3.Connection,
        record_id: str,
        version: int,
        state: bytes,
        state_metadata: str | None,
        recorded_at: int,
        *,
        signature: bytes = b"",
    ) -> str:
        digest = sha256_hex(update_digest_payload(record_id, version, state) + signature)
        conn.execute(
            """
            INSERT INTO notarization_versions
                (record_id, version, state, state_metadata, digest, recorded_at)
            VALUES (?, ?, ?, ?, ?, ?)
            """,
            (record_id, version, state, state_metadata, digest, recorded_at),
        )
        return digest

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> AnyRecord:
        common = {
            "record_id": row["record_id"],
            "state": bytes(row["state"]),
            "state_metadata": row["state_metadata"],
            "description": row["description"],
            "state_version_count": row["state_version_count"],
            "created_at": row["created_at"],
        }
        if row["kind"] == RecordKind.DYNAMIC.value:
            return MutableRecord(
                **common,
                updatable_metadata=row["updatable_metadata"],
                last_state_change_at=row["last_state_change_at"],
                owner=row["owner"],
            )
        lock_data = json.loads(row["delete_lock_json"] or "{}")
        return ImmutableRecord(**common, delete_lock=DeleteLock(**lock_data))
