"""Record Reader: fetch a notarization by ID off the event loop.

The ledger backend is synchronous. Reads are pushed to a worker thread so
the two sides of a verification can be in flight at the same time, and
each read is bounded by a timeout. Cancelling the awaiting task abandons
the read; the result is discarded.
"""

from __future__ import annotations

import asyncio
import logging

from dpplink.core.errors import LedgerUnavailableError, RecordNotFoundError
from dpplink.core.ledger import LedgerBackend
from dpplink.core.state_codec import decode_state
from dpplink.models.records import AnyRecord
from dpplink.models.state import DecodedState

logger = logging.getLogger(__name__)

ID_PREFIX = "0x"


def normalize_id(record_id: str) -> str:
    """Canonical ``0x``-prefixed form. Accepts prefixed or bare hex, never doubles the prefix."""
    trimmed = record_id.strip()
    if not trimmed:
        raise RecordNotFoundError(record_id, "Notarization ID must not be empty.")
    if trimmed.startswith(ID_PREFIX):
        return trimmed
    return f"{ID_PREFIX}{trimmed}"


class RecordReader:
    """Async read access to a ``LedgerBackend``.

    Parameters
    ----------
    backend:
        The ledger to read from. Shared across requests.
    timeout_seconds:
        Upper bound for one read. Expiry surfaces as ``LedgerUnavailableError``.
    """

    def __init__(self, backend: LedgerBackend, *, timeout_seconds: float = 30.0) -> None:
        self._backend = backend
        self._timeout = timeout_seconds

    async def read_record(self, record_id: str) -> AnyRecord:
        """Read one record. ``RecordNotFoundError`` and ``LedgerUnavailableError`` propagate."""
        canonical = normalize_id(record_id)
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(self._backend.read_by_id, canonical),
                timeout=self._timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.warning("Ledger read of %s timed out after %.1fs", canonical, self._timeout)
            raise LedgerUnavailableError(
                f"Ledger read of {canonical} timed out after {self._timeout:g}s."
            ) from exc
        except OSError as exc:
            raise LedgerUnavailableError(f"Ledger read of {canonical} failed: {exc}") from exc

    async def read_decoded(self, record_id: str) -> tuple[AnyRecord, DecodedState]:
        """Read a record and soft-decode its state in one step."""
        record = await self.read_record(record_id)
        return record, decode_state(record.state)
