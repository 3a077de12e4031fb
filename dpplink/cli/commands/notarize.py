"""Notarization write commands.

``derive-address``  print the signer address derived from DPP_MNEMONIC
``create-dynamic``  create a Dynamic record and link it to a GS1 key
``update-state``    push a new state version to the linked Dynamic record
``create-locked``   snapshot a CID into a Locked record and seal the link
"""

from __future__ import annotations

import typer
from rich.panel import Panel

from dpplink.cli.runtime import (
    console,
    fail,
    load_signer,
    open_ledger,
    open_links,
    resolve_key,
    settings_with,
)
from dpplink.core.errors import ResolverError
from dpplink.core.ledger import ImmutableRecordError, OwnershipError
from dpplink.core.record_reader import normalize_id
from dpplink.core.state_codec import decode_state, dynamic_state, locked_state
from dpplink.core.timefmt import utc_now_iso
from dpplink.gs1 import build_resolver_path
from dpplink.models.records import DeleteLock, MutableRecord

_LOCKED_DESCRIPTION = "DPP snapshot (locked)"


def derive_address_cmd() -> None:
    """Print the address and public key of the configured signer."""
    settings = settings_with()
    signer = load_signer(settings)
    console.print(f"[bold]Derivation path:[/bold] {settings.derivation_path}")
    console.print(f"[bold]Public key:[/bold]      {signer.public_key().hex()}")
    console.print(f"[bold]Address:[/bold]         {signer.address()}")


def create_dynamic_cmd(
    gtin: str = typer.Option(None, "--gtin", help="GTIN-14 (default: DPP_DEFAULT_GTIN)."),
    lot: str = typer.Option(None, "--lot", help="Lot number (default: DPP_DEFAULT_LOT)."),
    serial: str = typer.Option(None, "--serial", help="Serial number (default: DPP_DEFAULT_SERIAL)."),
    cid: str = typer.Option(None, "--cid", help="Manifest CID (default: DPP_MANIFEST_CID)."),
    seq: int = typer.Option(1, "--seq", help="Initial sequence number."),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
    links_db: str = typer.Option(None, "--links", help="Path to the link directory database."),
) -> None:
    """Create a Dynamic notarization and register it for a GS1 key.

    The link row is created with its Locked side PENDING, or repointed at
    the new record when the key already exists.
    """
    settings = settings_with(ledger_db, links_db)
    key = resolve_key(settings, gtin, lot, serial)
    manifest_cid = cid or settings.manifest_cid
    if not manifest_cid:
        fail("CID is required. Pass --cid or set DPP_MANIFEST_CID.")
    signer = load_signer(settings)

    ledger = open_ledger(settings)
    record_id = ledger.create_mutable(
        dynamic_state(manifest_cid, seq, utc_now_iso()),
        signer=signer,
        description=settings.notarization_description,
        metadata=settings.notarization_metadata,
    )
    link = open_links(settings).upsert_mutable(key, record_id)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Dynamic notarization created[/bold green]",
                "",
                f"[bold]ID:[/bold]       {record_id}",
                f"[bold]Owner:[/bold]    {signer.address()}",
                f"[bold]CID:[/bold]      {manifest_cid}",
                f"[bold]Seq:[/bold]      {seq}",
                f"[bold]Locked:[/bold]   {link.locked_id}",
                f"[bold]Resolver:[/bold] {build_resolver_path(key)}",
            ]),
            title="[bold]create-dynamic[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )


def update_state_cmd(
    gtin: str = typer.Option(None, "--gtin", help="GTIN-14 (default: DPP_DEFAULT_GTIN)."),
    lot: str = typer.Option(None, "--lot", help="Lot number (default: DPP_DEFAULT_LOT)."),
    serial: str = typer.Option(None, "--serial", help="Serial number (default: DPP_DEFAULT_SERIAL)."),
    cid: str = typer.Option(None, "--cid", help="New manifest CID (default: DPP_MANIFEST_CID)."),
    seq: int = typer.Option(None, "--seq", help="Sequence number (default: current seq + 1)."),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
    links_db: str = typer.Option(None, "--links", help="Path to the link directory database."),
) -> None:
    """Replace the state of the Dynamic notarization linked to a GS1 key."""
    settings = settings_with(ledger_db, links_db)
    key = resolve_key(settings, gtin, lot, serial)
    manifest_cid = cid or settings.manifest_cid
    if not manifest_cid:
        fail("CID is required. Pass --cid or set DPP_MANIFEST_CID.")
    signer = load_signer(settings)
    ledger = open_ledger(settings)

    try:
        link = open_links(settings).require(key)
        dynamic_id = normalize_id(link.dynamic_id)
        current = ledger.read_by_id(dynamic_id)
    except ResolverError as exc:
        fail(exc.message)

    if seq is None:
        previous = decode_state(current.state).payload.seq
        seq = (previous or 0) + 1

    try:
        receipt = ledger.update_mutable_state(
            dynamic_id,
            dynamic_state(manifest_cid, seq, utc_now_iso()),
            signer=signer,
        )
    except (ImmutableRecordError, OwnershipError) as exc:
        fail(str(exc))

    console.print(
        Panel(
            "\n".join([
                "[bold green]State updated[/bold green]",
                "",
                f"[bold]ID:[/bold]      {receipt.record_id}",
                f"[bold]Version:[/bold] {receipt.version}",
                f"[bold]CID:[/bold]     {manifest_cid}",
                f"[bold]Seq:[/bold]     {seq}",
                f"[bold]Digest:[/bold]  {receipt.digest}",
            ]),
            title="[bold]update-state[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )


def create_locked_cmd(
    gtin: str = typer.Option(None, "--gtin", help="GTIN-14 (default: DPP_DEFAULT_GTIN)."),
    lot: str = typer.Option(None, "--lot", help="Lot number (default: DPP_DEFAULT_LOT)."),
    serial: str = typer.Option(None, "--serial", help="Serial number (default: DPP_DEFAULT_SERIAL)."),
    cid: str = typer.Option(
        None,
        "--cid",
        help="CID to snapshot (default: DPP_MANIFEST_CID, then the Dynamic latest_cid).",
    ),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
    links_db: str = typer.Option(None, "--links", help="Path to the link directory database."),
) -> None:
    """Snapshot a CID into a Locked notarization and seal the GS1 link.

    The link must already exist: create the Dynamic side first.
    """
    settings = settings_with(ledger_db, links_db)
    key = resolve_key(settings, gtin, lot, serial)
    ledger = open_ledger(settings)
    links = open_links(settings)

    try:
        link = links.require(key)
    except ResolverError as exc:
        fail(f"{exc.message} Create the dynamic notarization first.")

    snapshot_cid = cid or settings.manifest_cid
    if not snapshot_cid:
        try:
            current = ledger.read_by_id(normalize_id(link.dynamic_id))
        except ResolverError as exc:
            fail(exc.message)
        snapshot_cid = decode_state(current.state).payload.latest_cid
    if not snapshot_cid:
        fail("No CID to snapshot. Pass --cid or set DPP_MANIFEST_CID.")

    locked_id = ledger.create_immutable(
        locked_state(snapshot_cid, utc_now_iso()),
        description=_LOCKED_DESCRIPTION,
        delete_lock=DeleteLock.none(),
    )
    sealed = links.attach_locked(key, locked_id)

    console.print(
        Panel(
            "\n".join([
                "[bold green]Locked snapshot created[/bold green]",
                "",
                f"[bold]Locked ID:[/bold]  {locked_id}",
                f"[bold]Dynamic ID:[/bold] {sealed.dynamic_id}",
                f"[bold]CID:[/bold]        {snapshot_cid}",
                f"[bold]Resolver:[/bold]   {build_resolver_path(key)}",
            ]),
            title="[bold]create-locked[/bold]",
            border_style="green",
            padding=(1, 2),
        )
    )


def set_metadata_cmd(
    record_id: str = typer.Argument(..., help="Dynamic notarization ID."),
    metadata: str = typer.Argument(..., help="New updatable metadata."),
    ledger_db: str = typer.Option(None, "--ledger", "-l", help="Path to the ledger SQLite database."),
) -> None:
    """Change the updatable metadata of a Dynamic notarization."""
    settings = settings_with(ledger_db)
    signer = load_signer(settings)
    ledger = open_ledger(settings)
    try:
        record = ledger.read_by_id(normalize_id(record_id))
    except ResolverError as exc:
        fail(exc.message)
    if not isinstance(record, MutableRecord):
        fail(f"Notarization {record.record_id} is locked; it has no updatable metadata.")
    try:
        ledger.update_mutable_metadata(record.record_id, metadata, signer=signer)
    except OwnershipError as exc:
        fail(str(exc))
    console.print(f"[green]Metadata updated for {record.record_id}.[/green]")
