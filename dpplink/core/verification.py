"""Verification Engine: Dynamic ``latest_cid`` vs Locked ``cid``.

The check is content equality only. Tamper evidence comes from the
ledger's guarantee that a Locked record cannot change after creation;
the engine trusts the ledger read path for both records.

Decode problems never raise. Each one appends a human-readable note and
forces ``verified = False``. Missing records do raise: they are a
precondition failure, not a data-quality issue.
"""

from __future__ import annotations

import asyncio
import logging

from dpplink.core.record_reader import RecordReader, normalize_id
from dpplink.core.timefmt import to_iso_timestamp
from dpplink.models.records import MutableRecord
from dpplink.models.verdict import DynamicSummary, LockedSummary, VerificationVerdict

logger = logging.getLogger(__name__)

NOTE_DYNAMIC_UNPARSEABLE = "No se pudo parsear el estado dinamico como JSON"
NOTE_LATEST_CID_MISSING = "latest_cid ausente en la notarizacion dinamica"
NOTE_SEQ_MISSING = "seq ausente en la notarizacion dinamica"
NOTE_LOCKED_UNPARSEABLE = "No se pudo parsear el estado locked como JSON"
NOTE_LOCKED_CID_MISSING = "cid ausente en la notarizacion locked"
NOTE_CID_MISMATCH = "El CID del snapshot locked no coincide con latest_cid del dinamico"


class VerificationEngine:
    """Cross-checks a Dynamic notarization against its Locked snapshot.

    Parameters
    ----------
    reader:
        Record reader over the shared ledger backend.
    """

    def __init__(self, reader: RecordReader) -> None:
        self._reader = reader

    async def verify(self, dynamic_id: str, locked_id: str) -> VerificationVerdict:
        """Read both records concurrently and compute the verdict."""
        dynamic_id = normalize_id(dynamic_id)
        locked_id = normalize_id(locked_id)

        (dynamic, dynamic_state), (locked, locked_state) = await asyncio.gather(
            self._reader.read_decoded(dynamic_id),
            self._reader.read_decoded(locked_id),
        )

        notes: list[str] = []
        latest_cid: str | None = None
        seq: int | None = None

        if dynamic_state.ok:
            latest_cid = dynamic_state.payload.latest_cid
            if latest_cid is None:
                notes.append(NOTE_LATEST_CID_MISSING)
            seq = dynamic_state.payload.seq
            if seq is None:
                notes.append(NOTE_SEQ_MISSING)
        else:
            logger.warning("Dynamic state of %s undecodable: %s", dynamic_id, dynamic_state.error)
            notes.append(NOTE_DYNAMIC_UNPARSEABLE)

        locked_cid: str | None = None
        if locked_state.ok:
            locked_cid = locked_state.payload.cid
            # Only worth flagging when there is something to compare against.
            if locked_cid is None and latest_cid is not None:
                notes.append(NOTE_LOCKED_CID_MISSING)
        else:
            logger.warning("Locked state of %s undecodable: %s", locked_id, locked_state.error)
            notes.append(NOTE_LOCKED_UNPARSEABLE)

        verified = latest_cid is not None and locked_cid is not None and latest_cid == locked_cid
        if not verified:
            notes.append(NOTE_CID_MISMATCH)

        last_change = dynamic.last_state_change_at if isinstance(dynamic, MutableRecord) else None
        verdict = VerificationVerdict(
            latest_cid=latest_cid,
            seq=seq,
            dynamic=DynamicSummary(
                version=dynamic.state_version_count,
                created_at=to_iso_timestamp(dynamic.created_at),
                last_state_change=to_iso_timestamp(last_change),
            ),
            locked=LockedSummary(
                cid=locked_cid,
                created_at=to_iso_timestamp(locked.created_at),
            ),
            verified=verified,
            notes=notes,
        )
        logger.debug(
            "Verified %s against %s: verified=%s notes=%d",
            dynamic_id,
            locked_id,
            verified,
            len(notes),
        )
        return verdict
