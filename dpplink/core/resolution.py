"""Resolution Service: GS1 key to a verified provenance view.

Order of operations:

1. Link lookup. Absent → ``LinkNotFoundError`` (404).
2. PENDING Locked side → ``LockedNotReadyError`` (409), no verdict.
3. Verification (both ledger reads concurrently).
4. Manifest fetch by ``latest_cid``, strictly after verification and only
   when there is a CID. Failure → ``ManifestUnavailableError`` (502),
   kept apart from verification failure.

The service is read-only and holds no per-request state.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Protocol

from dpplink.core.errors import LockedNotReadyError
from dpplink.core.link_directory import LinkDirectory
from dpplink.core.record_reader import normalize_id
from dpplink.core.verification import VerificationEngine
from dpplink.models.links import LinkKey
from dpplink.models.state import ContentReference
from dpplink.models.verdict import (
    Gs1Params,
    ManifestView,
    RecordIds,
    ResolvedView,
    StateView,
)

logger = logging.getLogger(__name__)


class ManifestSource(Protocol):
    async def fetch(self, cid: ContentReference | str) -> Any: ...


class ResolutionService:
    """Orchestrates link lookup, verification and manifest fetch.

    Parameters
    ----------
    links:
        The GS1 link directory.
    engine:
        Verification engine over the shared ledger reader.
    manifests:
        Manifest source (normally a ``ManifestFetcher``). ``None`` skips
        the fetch and reports ``fetched=False``.
    """

    def __init__(
        self,
        links: LinkDirectory,
        engine: VerificationEngine,
        manifests: ManifestSource | None = None,
    ) -> None:
        self._links = links
        self._engine = engine
        self._manifests = manifests

    async def resolve(self, gtin: str, lot: str, serial: str | None = None) -> ResolvedView:
        key = LinkKey(gtin=gtin, lot=lot, serial=serial or "")
        link = await asyncio.to_thread(self._links.require, key)

        if not link.is_sealed:
            raise LockedNotReadyError()

        verdict = await self._engine.verify(link.dynamic_id, link.locked_id)

        manifest = ManifestView(fetched=False)
        if verdict.latest_cid is not None and self._manifests is not None:
            data = await self._manifests.fetch(verdict.latest_cid)
            manifest = ManifestView(fetched=True, data=data)

        logger.info(
            "Resolved gtin=%s lot=%s serial=%r verified=%s",
            gtin,
            lot,
            serial,
            verdict.verified,
        )
        return ResolvedView(
            id=RecordIds(
                dynamic=normalize_id(link.dynamic_id),
                locked=normalize_id(link.locked_id),
            ),
            gs1=Gs1Params(gtin=gtin, lot=lot, serial=serial),
            state=StateView(
                latest_cid=verdict.latest_cid,
                seq=verdict.seq,
                version=verdict.dynamic.version,
                created_at=verdict.dynamic.created_at,
                last_state_change=verdict.dynamic.last_state_change,
            ),
            locked=verdict.locked,
            verified=verdict.verified,
            notes=list(verdict.notes),
            manifest=manifest,
        )
