"""Process-wide resources for the resolver, constructed explicitly.

One ledger backend, one link directory and one HTTP client are shared by
every in-flight resolution. They are passed into the app factory rather
than living as module singletons, so tests can hand in fakes.
"""

from __future__ import annotations

import logging

import httpx

from dpplink.bridge.gateway import ManifestFetcher
from dpplink.config import ResolverSettings
from dpplink.core.ledger import LedgerBackend, SqliteNotarizationLedger
from dpplink.core.link_directory import LinkDirectory
from dpplink.core.record_reader import RecordReader
from dpplink.core.resolution import ResolutionService
from dpplink.core.verification import VerificationEngine

logger = logging.getLogger(__name__)


class ResolverContext:
    """Shared dependencies of the resolution path.

    Parameters
    ----------
    settings:
        Resolved configuration (timeouts, gateway URL, token).
    ledger:
        Ledger backend; read-only from the resolver's point of view.
    links:
        GS1 link directory.
    http_client:
        Async client used for gateway fetches. Closed by ``aclose()``.
    """

    def __init__(
        self,
        settings: ResolverSettings,
        ledger: LedgerBackend,
        links: LinkDirectory,
        http_client: httpx.AsyncClient,
    ) -> None:
        self.settings = settings
        self.ledger = ledger
        self.links = links
        self.http_client = http_client

    @classmethod
    def from_settings(cls, settings: ResolverSettings) -> ResolverContext:
        logger.info(
            "Resolver context: ledger=%s links=%s gateway=%s",
            settings.ledger_path,
            settings.links_db_path,
            settings.ipfs_gateway_url,
        )
        return cls(
            settings=settings,
            ledger=SqliteNotarizationLedger(settings.ledger_path),
            links=LinkDirectory(
                settings.links_db_path, conflict_policy=settings.link_conflict_policy
            ),
            http_client=httpx.AsyncClient(follow_redirects=True),
        )

    def build_service(self) -> ResolutionService:
        reader = RecordReader(
            self.ledger, timeout_seconds=self.settings.ledger_read_timeout_seconds
        )
        fetcher = ManifestFetcher(
            self.http_client,
            gateway_url=self.settings.ipfs_gateway_url,
            bearer_token=self.settings.pinata_jwt,
            timeout_seconds=self.settings.ipfs_gateway_timeout_seconds,
        )
        return ResolutionService(self.links, VerificationEngine(reader), fetcher)

    async def aclose(self) -> None:
        await self.http_client.aclose()
