"""Read-only commands: ``read``, ``history``, ``verify``, ``resolve``, ``links``."""

from __future__ import annotations

import asyncio
import json

import httpx
import typer
from rich.table import Table

from dpplink.bridge.gateway import ManifestFetcher
from dpplink.cli.runtime import console, fail, open_ledger, open_links, resolve_key, settings_with
from dpplink.config import ResolverSettings
from dpplink.core.errors import ResolverError
from dpplink.core.record_reader import RecordReader, normalize_id
from dpplink.core.resolution import ResolutionService
from dpplink.core.timefmt import to_iso_timestamp
from dpplink.core.verification import VerificationEngine
from dpplink.models.records import MutableRecord
from dpplink.models.verdict import ResolvedView, VerificationVerdict


def _echo_json(data: object) -> None:
    typer.echo(json.dumps(data, indent=2, ensure_ascii=False))


def read_cmd(
    record_id: str = typer.Argument(..., help="Notarization ID (with or without 0x)."),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
) -> None:
    """Print the decoded state summary of a notarization as JSON."""
    settings = settings_with(ledger_db)
    reader = RecordReader(open_ledger(settings), timeout_seconds=settings.ledger_read_timeout_seconds)
    try:
        record, decoded = asyncio.run(reader.read_decoded(record_id))
    except ResolverError as exc:
        fail(exc.message)

    last_change = record.last_state_change_at if isinstance(record, MutableRecord) else None
    summary = {
        "id": record.record_id,
        "kind": record.kind.value,
        "latest_cid": decoded.payload.latest_cid,
        "cid": decoded.payload.cid,
        "seq": decoded.payload.seq,
        "version": record.state_version_count,
        "created_at": to_iso_timestamp(record.created_at),
        "last_state_change": to_iso_timestamp(last_change),
        "description": record.description,
        "metadata": record.updatable_metadata if isinstance(record, MutableRecord) else None,
    }
    if not decoded.ok:
        summary["decode_error"] = decoded.error
    _echo_json(summary)


def history_cmd(
    record_id: str = typer.Argument(..., help="Notarization ID (with or without 0x)."),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
) -> None:
    """Show every accepted state version of a notarization."""
    ledger = open_ledger(settings_with(ledger_db))
    try:
        receipts = ledger.state_history(normalize_id(record_id))
    except ResolverError as exc:
        fail(exc.message)
    if not receipts:
        fail(f"No versions recorded for {record_id}.")

    table = Table(title=f"State history {normalize_id(record_id)}")
    table.add_column("Version", justify="right", style="cyan")
    table.add_column("Recorded at")
    table.add_column("Digest", style="dim")
    for receipt in receipts:
        table.add_row(str(receipt.version), to_iso_timestamp(receipt.timestamp), receipt.digest)
    console.print(table)


def _print_verdict(verdict: VerificationVerdict) -> None:
    status = "[bold green]VERIFIED[/bold green]" if verdict.verified else "[bold red]NOT VERIFIED[/bold red]"
    table = Table(title="Verification", show_header=False)
    table.add_column("Field", style="bold")
    table.add_column("Value")
    table.add_row("Status", status)
    table.add_row("latest_cid", verdict.latest_cid or "-")
    table.add_row("locked cid", verdict.locked.cid or "-")
    table.add_row("seq", "-" if verdict.seq is None else str(verdict.seq))
    table.add_row("version", "-" if verdict.dynamic.version is None else str(verdict.dynamic.version))
    table.add_row("dynamic created", verdict.dynamic.created_at)
    table.add_row("last state change", verdict.dynamic.last_state_change)
    table.add_row("locked created", verdict.locked.created_at)
    console.print(table)
    for note in verdict.notes:
        console.print(f"  [yellow]- {note}[/yellow]")


def verify_cmd(
    dynamic_id: str = typer.Argument(..., help="Dynamic notarization ID."),
    locked_id: str = typer.Argument(..., help="Locked notarization ID."),
    as_json: bool = typer.Option(False, "--json", help="Print the verdict as JSON."),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
) -> None:
    """Cross-check a Dynamic notarization against a Locked snapshot.

    Exits with code 2 when the pair does not verify.
    """
    settings = settings_with(ledger_db)
    reader = RecordReader(open_ledger(settings), timeout_seconds=settings.ledger_read_timeout_seconds)
    try:
        verdict = asyncio.run(VerificationEngine(reader).verify(dynamic_id, locked_id))
    except ResolverError as exc:
        fail(exc.message)

    if as_json:
        _echo_json(verdict.model_dump(mode="json"))
    else:
        _print_verdict(verdict)
    if not verdict.verified:
        raise typer.Exit(code=2)


async def _resolve_once(
    settings: ResolverSettings, gtin: str, lot: str, serial: str | None, fetch: bool
) -> ResolvedView:
    reader = RecordReader(open_ledger(settings), timeout_seconds=settings.ledger_read_timeout_seconds)
    engine = VerificationEngine(reader)
    links = open_links(settings)
    if not fetch:
        return await ResolutionService(links, engine).resolve(gtin, lot, serial)
    async with httpx.AsyncClient(follow_redirects=True) as client:
        fetcher = ManifestFetcher(
            client,
            gateway_url=settings.ipfs_gateway_url,
            bearer_token=settings.pinata_jwt,
            timeout_seconds=settings.ipfs_gateway_timeout_seconds,
        )
        return await ResolutionService(links, engine, fetcher).resolve(gtin, lot, serial)


def resolve_cmd(
    gtin: str = typer.Option(None, "--gtin", help="GTIN-14 (default: DPP_DEFAULT_GTIN)."),
    lot: str = typer.Option(None, "--lot", help="Lot number (default: DPP_DEFAULT_LOT)."),
    serial: str = typer.Option(None, "--serial", help="Serial number (default: DPP_DEFAULT_SERIAL)."),
    fetch_manifest: bool = typer.Option(
        False, "--fetch-manifest/--no-fetch-manifest", help="Also fetch the manifest from IPFS."
    ),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
    links_db: str = typer.Option(None, "--links", help="Path to the link directory database."),
) -> None:
    """Resolve a GS1 key the way the HTTP resolver does and print the JSON body."""
    settings = settings_with(ledger_db, links_db)
    key = resolve_key(settings, gtin, lot, serial)
    try:
        view = asyncio.run(
            _resolve_once(settings, key.gtin, key.lot, key.serial or None, fetch_manifest)
        )
    except ResolverError as exc:
        console.print(f"[bold red]{exc.error_code}:[/bold red] {exc.message}")
        raise typer.Exit(code=1)
    _echo_json(view.to_response())


def links_cmd(
    limit: int = typer.Option(100, "--limit", help="Maximum rows to show."),
    offset: int = typer.Option(0, "--offset", help="Rows to skip."),
    links_db: str = typer.Option(None, "--links", help="Path to the link directory database."),
) -> None:
    """List the GS1 link directory."""
    rows = open_links(settings_with(links_db=links_db)).list_links(limit=limit, offset=offset)
    if not rows:
        console.print("[dim]No links registered.[/dim]")
        return

    table = Table(title="dpp_links")
    table.add_column("GTIN", style="cyan", no_wrap=True)
    table.add_column("Lot")
    table.add_column("Serial")
    table.add_column("Dynamic", overflow="fold")
    table.add_column("Locked", overflow="fold")
    for link in rows:
        locked = link.locked_id if link.is_sealed else f"[yellow]{link.locked_id}[/yellow]"
        table.add_row(link.gtin, link.lot, link.serial or "-", link.dynamic_id, locked)
    console.print(table)
