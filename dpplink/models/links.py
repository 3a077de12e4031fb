"""Link directory models: GS1 key to notarization ID pair."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

# Stored in dpp_links.locked_id until a Locked snapshot is attached.
PENDING = "PENDING"


def is_pending(locked_id: str | None) -> bool:
    """True for the PENDING sentinel, including NULL or case variants from other writers."""
    return not locked_id or locked_id.strip().upper() == PENDING


class ConflictPolicy(str, Enum):
    """What ``upsert_mutable`` does to the locked side of an existing link."""

    PRESERVE_LOCKED = "preserve_locked"
    RESET_LOCKED = "reset_locked"


class LinkKey(BaseModel):
    """A GS1 Digital Link key. Empty ``serial`` is a real value, not a wildcard."""

    model_config = ConfigDict(frozen=True)

    gtin: str
    lot: str
    serial: str = ""


class Link(BaseModel):
    """A row of the link directory."""

    model_config = ConfigDict(frozen=True)

    gtin: str
    lot: str
    serial: str = ""
    dynamic_id: str
    locked_id: str = PENDING

    @property
    def key(self) -> LinkKey:
        return LinkKey(gtin=self.gtin, lot=self.lot, serial=self.serial)

    @property
    def is_sealed(self) -> bool:
        return not is_pending(self.locked_id)
