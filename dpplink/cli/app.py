"""Main Typer application: imports and registers all CLI commands.

Entry point: ``dpplink`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import typer

from dpplink.cli.commands.gs1_cmd import epcis_cmd, parse_link_cmd
from dpplink.cli.commands.inspect_cmd import (
    history_cmd,
    links_cmd,
    read_cmd,
    resolve_cmd,
    verify_cmd,
)
from dpplink.cli.commands.notarize import (
    create_dynamic_cmd,
    create_locked_cmd,
    derive_address_cmd,
    set_metadata_cmd,
    update_state_cmd,
)
from dpplink.cli.commands.serve import serve_cmd
from dpplink.config import configure_logging, load_settings

app = typer.Typer(
    name="dpplink",
    help="dpplink: GS1 Digital Link resolver with Dynamic/Locked notarization checks.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Resolver
app.command(name="serve", help="Run the HTTP resolver.")(serve_cmd)
app.command(name="resolve", help="Resolve a GS1 key from the command line.")(resolve_cmd)

# Notarization writes
app.command(name="derive-address", help="Show the signer derived from DPP_MNEMONIC.")(derive_address_cmd)
app.command(name="create-dynamic", help="Create a Dynamic notarization for a GS1 key.")(create_dynamic_cmd)
app.command(name="update-state", help="Push a new state to the linked Dynamic notarization.")(update_state_cmd)
app.command(name="set-metadata", help="Change the updatable metadata of a Dynamic notarization.")(set_metadata_cmd)
app.command(name="create-locked", help="Snapshot a CID as a Locked notarization.")(create_locked_cmd)

# Inspection
app.command(name="read", help="Read a notarization and print its state summary.")(read_cmd)
app.command(name="history", help="List the state versions of a notarization.")(history_cmd)
app.command(name="verify", help="Cross-check a Dynamic and a Locked notarization.")(verify_cmd)
app.command(name="links", help="List the GS1 link directory.")(links_cmd)

# GS1
app.command(name="parse-link", help="Parse a GS1 Digital Link URL.")(parse_link_cmd)
app.command(name="epcis", help="Generate an EPCIS commissioning event.")(epcis_cmd)


def main() -> None:
    """Console-script entry point."""
    configure_logging(load_settings().log_level)
    app()


if __name__ == "__main__":
    main()
