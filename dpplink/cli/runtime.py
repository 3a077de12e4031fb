"""Shared wiring for CLI commands: settings, ledger, link directory, signer."""

from __future__ import annotations

from pathlib import Path
from typing import NoReturn

import typer
from rich.console import Console

from dpplink.bridge.signer import Ed25519Signer
from dpplink.config import ResolverSettings, load_settings
from dpplink.core.ledger import SqliteNotarizationLedger
from dpplink.core.link_directory import LinkDirectory
from dpplink.models.links import LinkKey

console = Console()


def settings_with(ledger_db: str | None = None, links_db: str | None = None) -> ResolverSettings:
    overrides: dict[str, object] = {}
    if ledger_db:
        overrides["ledger_path"] = Path(ledger_db)
    if links_db:
        overrides["links_db_path"] = Path(links_db)
    return load_settings(**overrides)


def open_ledger(settings: ResolverSettings) -> SqliteNotarizationLedger:
    return SqliteNotarizationLedger(settings.ledger_path)


def open_links(settings: ResolverSettings) -> LinkDirectory:
    return LinkDirectory(settings.links_db_path, conflict_policy=settings.link_conflict_policy)


def load_signer(settings: ResolverSettings) -> Ed25519Signer:
    if not settings.mnemonic:
        fail("DPP_MNEMONIC is required to derive the signer.")
    try:
        return Ed25519Signer.from_mnemonic(settings.mnemonic, settings.derivation_path)
    except ValueError as exc:
        fail(f"Cannot derive signer: {exc}")


def fail(message: str) -> NoReturn:
    """Print an error line and exit with code 1."""
    console.print(f"[bold red]error:[/bold red] {message}")
    raise typer.Exit(code=1)


def resolve_key(
    settings: ResolverSettings, gtin: str | None, lot: str | None, serial: str | None
) -> LinkKey:
    try:
        return settings.default_key(gtin, lot, serial)
    except ValueError as exc:
        fail(str(exc))
