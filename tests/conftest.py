"""Shared test fixtures for dpplink."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from dpplink.bridge.signer import Ed25519Signer
from dpplink.core.ledger import SqliteNotarizationLedger
from dpplink.core.link_directory import LinkDirectory
from dpplink.core.record_reader import RecordReader
from dpplink.core.state_codec import dynamic_state, locked_state
from dpplink.core.verification import VerificationEngine
from dpplink.models.links import LinkKey

TEST_MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)

# 2024-05-01T10:00:00Z
T0 = 1714557600


class FakeClock:
    """Epoch-seconds clock the tests can move forward."""

    def __init__(self, now: int = T0) -> None:
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> None:
        self.now += seconds


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger(tmp_path: Path, clock: FakeClock) -> SqliteNotarizationLedger:
    """Provide a fresh ledger backed by a temp SQLite database."""
    return SqliteNotarizationLedger(tmp_path / "ledger.db", clock=clock)


@pytest.fixture
def links(tmp_path: Path) -> LinkDirectory:
    """Provide a fresh link directory backed by a temp SQLite database."""
    return LinkDirectory(tmp_path / "links.db")


@pytest.fixture
def signer() -> Ed25519Signer:
    return Ed25519Signer.from_mnemonic(TEST_MNEMONIC)


@pytest.fixture
def other_signer() -> Ed25519Signer:
    return Ed25519Signer.from_seed(b"\x07" * 32)


@pytest.fixture
def reader(ledger: SqliteNotarizationLedger) -> RecordReader:
    return RecordReader(ledger, timeout_seconds=5.0)


@pytest.fixture
def engine(reader: RecordReader) -> VerificationEngine:
    return VerificationEngine(reader)


@pytest.fixture
def key() -> LinkKey:
    return LinkKey(gtin="00012345600012", lot="L001", serial="S0001")


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


@pytest.fixture
def notarize_pair(
    ledger: SqliteNotarizationLedger, signer: Ed25519Signer
) -> Callable[..., tuple[str, str]]:
    """Factory fixture: create a Dynamic and a Locked record, return their IDs.

    Raw ``dynamic_bytes`` / ``locked_bytes`` override the well-formed states.
    """

    def _factory(
        latest_cid: str = "bafyA",
        locked_cid: str = "bafyA",
        seq: int = 1,
        *,
        dynamic_bytes: bytes | None = None,
        locked_bytes: bytes | None = None,
    ) -> tuple[str, str]:
        dynamic_id = ledger.create_mutable(
            dynamic_bytes
            if dynamic_bytes is not None
            else dynamic_state(latest_cid, seq, "2024-05-01T10:00:00.000Z"),
            signer=signer,
            description="DPP - estado vivo",
        )
        locked_id = ledger.create_immutable(
            locked_bytes
            if locked_bytes is not None
            else locked_state(locked_cid, "2024-05-01T10:00:00.000Z"),
            description="DPP snapshot (locked)",
        )
        return dynamic_id, locked_id

    return _factory


@pytest.fixture
def seed_link(
    links: LinkDirectory, notarize_pair: Callable[..., tuple[str, str]]
) -> Callable[..., tuple[str, str]]:
    """Factory fixture: notarize a pair and register it under a GS1 key.

    ``sealed=False`` leaves the Locked side PENDING.
    """

    def _factory(key: LinkKey, *, sealed: bool = True, **pair_kwargs) -> tuple[str, str]:
        dynamic_id, locked_id = notarize_pair(**pair_kwargs)
        links.upsert_mutable(key, dynamic_id)
        if sealed:
            links.attach_locked(key, locked_id)
        return dynamic_id, locked_id

    return _factory
