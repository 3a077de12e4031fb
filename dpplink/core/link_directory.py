"""Link Directory: GS1 (gtin, lot, serial) to Dynamic/Locked notarization IDs.

Backed by a single SQLite table ``dpp_links`` keyed on the full GS1 key.
Lifecycle of a row:

1. ``upsert_mutable`` creates it with ``locked_id = 'PENDING'``.
2. ``attach_locked`` seals it. Attaching to a key with no row fails:
   a snapshot cannot be sealed before the Dynamic record exists.

Re-running ``upsert_mutable`` on an existing key follows the directory's
``ConflictPolicy``.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path

from dpplink.core.errors import LinkNotFoundError
from dpplink.models.links import PENDING, ConflictPolicy, Link, LinkKey, is_pending

logger = logging.getLogger(__name__)


_CREATE_LINKS = """
CREATE TABLE IF NOT EXISTS dpp_links (
    gtin        TEXT NOT NULL,
    lot         TEXT NOT NULL,
    serial      TEXT NOT NULL DEFAULT '',
    dynamic_id  TEXT NOT NULL,
    locked_id   TEXT DEFAULT 'PENDING',
    PRIMARY KEY (gtin, lot, serial)
);
"""

_UPSERT_PRESERVE = """
INSERT INTO dpp_links (gtin, lot, serial, dynamic_id, locked_id)
     VALUES (?, ?, ?, ?, ?)
ON CONFLICT (gtin, lot, serial)
  DO UPDATE SET dynamic_id = excluded.dynamic_id
"""

_UPSERT_RESET = """
INSERT INTO dpp_links (gtin, lot, serial, dynamic_id, locked_id)
     VALUES (?, ?, ?, ?, ?)
ON CONFLICT (gtin, lot, serial)
  DO UPDATE SET dynamic_id = excluded.dynamic_id,
                locked_id = excluded.locked_id
"""

_SELECT_ONE = """
SELECT gtin, lot, serial, dynamic_id, locked_id
  FROM dpp_links
 WHERE gtin = ? AND lot = ? AND serial = ?
"""


class LinkDirectory:
    """SQLite-backed ``dpp_links`` table.

    Parameters
    ----------
    db_path:
        Path to the SQLite database file. Created if it does not exist.
    conflict_policy:
        What ``upsert_mutable`` does to an already-attached Locked ID.
        ``PRESERVE_LOCKED`` (default) keeps it; ``RESET_LOCKED`` puts the
        row back to PENDING.
    """

    def __init__(
        self,
        db_path: Path,
        *,
        conflict_policy: ConflictPolicy = ConflictPolicy.PRESERVE_LOCKED,
    ) -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._conflict_policy = conflict_policy
        self._init_schema()

    @property
    def conflict_policy(self) -> ConflictPolicy:
        return self._conflict_policy

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), check_same_thread=False)
        conn.execute("PRAGMA journal_mode=WAL")
        return conn

    def _init_schema(self) -> None:
        with self._connect() as conn:
            conn.execute(_CREATE_LINKS)
            conn.commit()

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def lookup(self, key: LinkKey) -> Link | None:
        """Exact match on all three fields, or ``None``."""
        with self._connect() as conn:
            row = conn.execute(_SELECT_ONE, (key.gtin, key.lot, key.serial)).fetchone()
        return self._row_to_link(row) if row else None

    def require(self, key: LinkKey) -> Link:
        """Like ``lookup`` but raises ``LinkNotFoundError`` when absent."""
        link = self.lookup(key)
        if link is None:
            logger.debug("No dpp_links row for gtin=%s lot=%s serial=%r", key.gtin, key.lot, key.serial)
            raise LinkNotFoundError()
        return link

    def list_links(self, *, limit: int = 100, offset: int = 0) -> list[Link]:
        with self._connect() as conn:
            rows = conn.execute(
                """
                SELECT gtin, lot, serial, dynamic_id, locked_id
                  FROM dpp_links
                 ORDER BY gtin, lot, serial
                 LIMIT ? OFFSET ?
                """,
                (limit, offset),
            ).fetchall()
        return [self._row_to_link(row) for row in rows]

    # ------------------------------------------------------------------
    # Writes (CLI only; the resolver never writes)
    # ------------------------------------------------------------------

    def upsert_mutable(self, key: LinkKey, dynamic_id: str) -> Link:
        """Create the link or point it at a new Dynamic notarization."""
        statement = (
            _UPSERT_RESET
            if self._conflict_policy == ConflictPolicy.RESET_LOCKED
            else _UPSERT_PRESERVE
        )
        with self._connect() as conn:
            conn.execute(statement, (key.gtin, key.lot, key.serial, dynamic_id, PENDING))
            row = conn.execute(_SELECT_ONE, (key.gtin, key.lot, key.serial)).fetchone()
            conn.commit()
        link = self._row_to_link(row)
        logger.info(
            "dpp_links upsert gtin=%s lot=%s serial=%s -> dynamic=%s locked=%s",
            link.gtin,
            link.lot,
            link.serial,
            link.dynamic_id,
            link.locked_id,
        )
        return link

    def attach_locked(self, key: LinkKey, locked_id: str) -> Link:
        """Seal an existing link with a Locked notarization ID."""
        with self._connect() as conn:
            cursor = conn.execute(
                """
                UPDATE dpp_links
                   SET locked_id = ?
                 WHERE gtin = ? AND lot = ? AND serial = ?
                """,
                (locked_id, key.gtin, key.lot, key.serial),
            )
            if cursor.rowcount == 0:
                raise LinkNotFoundError(
                    "dpp_links entry not found. Create the dynamic notarization first."
                )
            row = conn.execute(_SELECT_ONE, (key.gtin, key.lot, key.serial)).fetchone()
            conn.commit()
        link = self._row_to_link(row)
        logger.info(
            "dpp_links sealed gtin=%s lot=%s serial=%s -> locked=%s",
            link.gtin,
            link.lot,
            link.serial,
            link.locked_id,
        )
        return link

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _row_to_link(row: tuple) -> Link:
        gtin, lot, serial, dynamic_id, locked_id = row
        return Link(
            gtin=gtin,
            lot=lot,
            serial=serial or "",
            dynamic_id=dynamic_id,
            locked_id=PENDING if is_pending(locked_id) else locked_id,
        )
