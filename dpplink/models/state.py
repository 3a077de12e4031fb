"""State payload and content reference models.

The ledger stores state as opaque bytes. These models are the typed view
the verification side builds on top of them; a payload that cannot be
parsed is still representable (empty ``raw`` plus a diagnostic).
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator


class ContentReference(BaseModel):
    """An opaque content identifier (CID) in a content-addressed store.

    Equality is exact string equality after trimming surrounding
    whitespace. No multibase/multihash canonicalization is applied.
    """

    model_config = ConfigDict(frozen=True)

    cid: str

    @field_validator("cid")
    @classmethod
    def _strip_and_require(cls, value: str) -> str:
        trimmed = value.strip()
        if not trimmed:
            raise ValueError("content identifier must not be empty")
        return trimmed

    @classmethod
    def parse(cls, value: Any) -> ContentReference | None:
        """Return a reference for a non-empty string, ``None`` otherwise."""
        if isinstance(value, str) and value.strip():
            return cls(cid=value)
        return None

    def gateway_url(self, gateway_base: str) -> str:
        return f"{gateway_base.rstrip('/')}/{self.cid}"

    def __str__(self) -> str:
        return self.cid


class StatePayload(BaseModel):
    """The JSON object carried in a notarization's state bytes.

    Recognized keys: ``latest_cid``, ``seq`` and ``updated_at`` on the
    dynamic side; ``cid`` and ``created_at`` on the locked side. Accessors
    return ``None`` when a key is absent or has the wrong JSON type. CID
    accessors return the trimmed value, and ``None`` for a blank string.
    """

    model_config = ConfigDict(frozen=True)

    raw: dict[str, Any] = {}

    def _text(self, key: str) -> str | None:
        value = self.raw.get(key)
        return value if isinstance(value, str) else None

    def _cid(self, key: str) -> str | None:
        # empty or whitespace-only CIDs read as absent
        ref = ContentReference.parse(self.raw.get(key))
        return ref.cid if ref is not None else None

    @property
    def latest_cid(self) -> str | None:
        return self._cid("latest_cid")

    @property
    def cid(self) -> str | None:
        return self._cid("cid")

    @property
    def seq(self) -> int | None:
        value = self.raw.get("seq")
        # bool is an int subclass; JSON true/false is not a sequence number
        if isinstance(value, bool) or not isinstance(value, int):
            return None
        return value

    @property
    def updated_at(self) -> str | None:
        return self._text("updated_at")

    @property
    def created_at(self) -> str | None:
        return self._text("created_at")


class DecodedState(BaseModel):
    """Result of a soft decode: a payload, plus an error when decoding failed."""

    model_config = ConfigDict(frozen=True)

    payload: StatePayload = StatePayload()
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
