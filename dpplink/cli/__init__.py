"""dpplink CLI: Typer-based command-line interface.

Provides the ``dpplink`` command with subcommands for notarizing product
state (Dynamic create/update, Locked snapshot), inspecting records and
links, verifying and resolving GS1 keys, and serving the HTTP resolver.

All output uses Rich for formatted terminal display.
"""
