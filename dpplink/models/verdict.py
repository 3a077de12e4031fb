"""Verification verdict and resolver response models.

Both are derived views; nothing here is persisted.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class DynamicSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: int | None = None
    created_at: str = "n/d"
    last_state_change: str = "n/d"


class LockedSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    cid: str | None = None
    created_at: str = "n/d"


class VerificationVerdict(BaseModel):
    """Outcome of comparing a Dynamic ``latest_cid`` with a Locked ``cid``.

    ``verified`` is true if and only if both CIDs are present and equal.
    ``notes`` keeps the order in which problems were found.
    """

    model_config = ConfigDict(frozen=True)

    latest_cid: str | None = None
    seq: int | None = None
    dynamic: DynamicSummary = DynamicSummary()
    locked: LockedSummary = LockedSummary()
    verified: bool = False
    notes: list[str] = []


# ---------------------------------------------------------------------------
# Resolver response
# ---------------------------------------------------------------------------


class RecordIds(BaseModel):
    model_config = ConfigDict(frozen=True)

    dynamic: str
    locked: str


class Gs1Params(BaseModel):
    model_config = ConfigDict(frozen=True)

    gtin: str
    lot: str
    serial: str | None = None  # None when the request carried no serial segment


class StateView(BaseModel):
    model_config = ConfigDict(frozen=True)

    latest_cid: str | None = None
    seq: int | None = None
    version: int | None = None
    created_at: str = "n/d"
    last_state_change: str = "n/d"


class ManifestView(BaseModel):
    """Manifest fetch outcome. ``data`` is only present when ``fetched``."""

    model_config = ConfigDict(frozen=True)

    fetched: bool = False
    data: Any = None


class ResolvedView(BaseModel):
    """Everything the resolver returns for a sealed GS1 key."""

    model_config = ConfigDict(frozen=True)

    id: RecordIds
    gs1: Gs1Params
    state: StateView
    locked: LockedSummary
    verified: bool
    notes: list[str] = []
    manifest: ManifestView = ManifestView()

    def to_response(self) -> dict[str, Any]:
        """JSON body for the HTTP resolver."""
        body = self.model_dump(mode="json")
        if not self.manifest.fetched:
            body["manifest"].pop("data", None)
        return body
