"""dpplink data models: all Pydantic v2, all frozen (immutable)."""

from dpplink.models.links import PENDING, ConflictPolicy, Link, LinkKey, is_pending
from dpplink.models.records import (
    AnyRecord,
    DeleteLock,
    DeleteLockKind,
    ImmutableRecord,
    LedgerReceipt,
    LedgerRecord,
    MutableRecord,
    RecordKind,
)
from dpplink.models.state import ContentReference, DecodedState, StatePayload
from dpplink.models.verdict import (
    DynamicSummary,
    Gs1Params,
    LockedSummary,
    ManifestView,
    RecordIds,
    ResolvedView,
    StateView,
    VerificationVerdict,
)

__all__ = [
    # state
    "ContentReference",
    "StatePayload",
    "DecodedState",
    # records
    "RecordKind",
    "DeleteLockKind",
    "DeleteLock",
    "LedgerRecord",
    "MutableRecord",
    "ImmutableRecord",
    "AnyRecord",
    "LedgerReceipt",
    # links
    "PENDING",
    "is_pending",
    "ConflictPolicy",
    "LinkKey",
    "Link",
    # verdict
    "DynamicSummary",
    "LockedSummary",
    "VerificationVerdict",
    "RecordIds",
    "Gs1Params",
    "StateView",
    "ManifestView",
    "ResolvedView",
]
