"""IPFS gateway bridge: fetch a manifest body by CID over HTTP.

A single ``httpx.AsyncClient`` is shared by all in-flight resolutions and
closed by whoever created it. The gateway timeout is separate from the
ledger read timeout: gateway latency is the dominant tail risk.

Any transport error, timeout or non-2xx status becomes a
``ManifestUnavailableError``.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from dpplink.core.errors import ManifestUnavailableError
from dpplink.models.state import ContentReference

logger = logging.getLogger(__name__)

DEFAULT_GATEWAY_URL = "https://gateway.pinata.cloud/ipfs"


class ManifestFetcher:
    """Fetches documents from an IPFS HTTP gateway.

    Parameters
    ----------
    client:
        Shared async HTTP client. Not closed by this class.
    gateway_url:
        Base URL; the CID is appended as the last path segment.
    bearer_token:
        Optional JWT sent as ``Authorization: Bearer`` (Pinata dedicated gateways).
    timeout_seconds:
        Bound for a single fetch.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        *,
        gateway_url: str = DEFAULT_GATEWAY_URL,
        bearer_token: str = "",
        timeout_seconds: float = 15.0,
    ) -> None:
        self._client = client
        self._gateway_url = gateway_url.rstrip("/")
        self._bearer_token = bearer_token
        self._timeout = timeout_seconds

    def url_for(self, cid: ContentReference | str) -> str:
        reference = cid if isinstance(cid, ContentReference) else ContentReference(cid=cid)
        return reference.gateway_url(self._gateway_url)

    async def fetch(self, cid: ContentReference | str) -> Any:
        """Return the decoded manifest: parsed JSON when possible, text otherwise."""
        url = self.url_for(cid)
        headers: dict[str, str] = {}
        if self._bearer_token:
            headers["Authorization"] = f"Bearer {self._bearer_token}"

        try:
            response = await self._client.get(url, headers=headers, timeout=self._timeout)
            response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("IPFS gateway timed out for %s", url)
            raise ManifestUnavailableError(
                f"IPFS gateway timed out after {self._timeout:g}s."
            ) from exc
        except httpx.HTTPStatusError as exc:
            logger.warning("IPFS gateway returned %d for %s", exc.response.status_code, url)
            raise ManifestUnavailableError(
                f"IPFS gateway returned HTTP {exc.response.status_code}."
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("IPFS gateway request failed for %s: %s", url, exc)
            raise ManifestUnavailableError(f"IPFS gateway request failed: {exc}") from exc

        try:
            return response.json()
        except ValueError:
            return response.text
