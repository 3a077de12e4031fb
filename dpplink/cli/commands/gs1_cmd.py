"""GS1 utilities: ``parse-link`` and ``epcis``."""

from __future__ import annotations

import json
from pathlib import Path

import typer

from dpplink.cli.runtime import console, fail, resolve_key, settings_with
from dpplink.gs1 import build_object_event, is_valid_gtin, parse_digital_link


def parse_link_cmd(
    url: str = typer.Argument(..., help="GS1 Digital Link URL or resolver path."),
) -> None:
    """Extract gtin, lot and serial from a Digital Link."""
    key = parse_digital_link(url)
    if key is None:
        fail(f"Not a resolver link: {url}")
    payload = key.model_dump()
    payload["gtin_valid"] = is_valid_gtin(key.gtin)
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


def epcis_cmd(
    gtin: str = typer.Option(None, "--gtin", help="GTIN-14 (default: DPP_DEFAULT_GTIN)."),
    lot: str = typer.Option(None, "--lot", help="Lot number (default: DPP_DEFAULT_LOT)."),
    serial: str = typer.Option(None, "--serial", help="Serial number (default: DPP_DEFAULT_SERIAL)."),
    gln: str = typer.Option("", "--gln", help="Read point GLN (optional)."),
    biz_step: str = typer.Option("commissioning", "--biz-step", help="CBV business step."),
    output: Path = typer.Option(None, "--output", "-o", help="Write the event to this file."),
) -> None:
    """Generate an EPCIS 2.0 commissioning ObjectEvent for an item."""
    settings = settings_with()
    key = resolve_key(settings, gtin, lot, serial)
    if not key.serial:
        fail("A serial number is required to build an SGTIN.")
    try:
        event = build_object_event(key, read_point_gln=gln, biz_step=biz_step)
    except ValueError as exc:
        fail(str(exc))

    document = json.dumps(event, indent=2, ensure_ascii=False)
    if output is None:
        typer.echo(document)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(document + "\n", encoding="utf-8")
    console.print(f"[green]EPCIS event written to {output}[/green]")
