"""Resolver core: ledger access, verification, link directory, resolution."""

from dpplink.core.link_directory import LinkDirectory
from dpplink.core.record_reader import RecordReader, normalize_id
from dpplink.core.resolution import ResolutionService
from dpplink.core.verification import VerificationEngine

__all__ = [
    "LinkDirectory",
    "RecordReader",
    "normalize_id",
    "ResolutionService",
    "VerificationEngine",
]
