"""Unit tests for the CLI: command registration and the notarize/lock/verify flow.

Exercises the Typer app via typer.testing.CliRunner against temp SQLite
databases configured through DPP_* environment variables.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from dpplink.bridge.signer import Ed25519Signer
from dpplink.cli.app import app
from dpplink.core.ledger import SqliteNotarizationLedger
from dpplink.core.link_directory import LinkDirectory
from dpplink.models.links import PENDING, LinkKey

runner = CliRunner()

MNEMONIC = (
    "abandon abandon abandon abandon abandon abandon "
    "abandon abandon abandon abandon abandon about"
)
GS1 = ["--gtin", "00012345600012", "--lot", "L001", "--serial", "S0001"]
KEY = LinkKey(gtin="00012345600012", lot="L001", serial="S0001")


@pytest.fixture
def cli_env(tmp_path: Path) -> dict[str, str]:
    return {
        "DPP_MNEMONIC": MNEMONIC,
        "DPP_LEDGER_PATH": str(tmp_path / "ledger.db"),
        "DPP_LINKS_DB_PATH": str(tmp_path / "links.db"),
        "DPP_MANIFEST_CID": "",
        "DPP_DEFAULT_GTIN": "",
        "DPP_DEFAULT_LOT": "",
        "DPP_DEFAULT_SERIAL": "",
    }


def _links(env: dict[str, str]) -> LinkDirectory:
    return LinkDirectory(Path(env["DPP_LINKS_DB_PATH"]))


def _ledger(env: dict[str, str]) -> SqliteNotarizationLedger:
    return SqliteNotarizationLedger(Path(env["DPP_LEDGER_PATH"]))


# ---------------------------------------------------------------------------
# Test: CLI help and registration
# ---------------------------------------------------------------------------


class TestCliApp:
    def test_no_args_shows_help(self):
        result = runner.invoke(app, [])
        assert result.exit_code in (0, 2)
        assert "usage" in result.output.lower()

    @pytest.mark.parametrize(
        "command",
        [
            "serve",
            "resolve",
            "derive-address",
            "create-dynamic",
            "update-state",
            "set-metadata",
            "create-locked",
            "read",
            "history",
            "verify",
            "links",
            "parse-link",
            "epcis",
        ],
    )
    def test_command_registered(self, command: str):
        result = runner.invoke(app, [command, "--help"])
        assert result.exit_code == 0


# ---------------------------------------------------------------------------
# Test: notarization flow
# ---------------------------------------------------------------------------


class TestNotarizationFlow:
    def test_derive_address(self, cli_env):
        result = runner.invoke(app, ["derive-address"], env=cli_env)
        assert result.exit_code == 0
        assert Ed25519Signer.from_mnemonic(MNEMONIC).address() in result.output

    def test_missing_mnemonic(self, cli_env):
        cli_env["DPP_MNEMONIC"] = ""
        result = runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA"], env=cli_env)
        assert result.exit_code == 1
        assert "DPP_MNEMONIC" in result.output

    def test_missing_cid(self, cli_env):
        result = runner.invoke(app, ["create-dynamic", *GS1], env=cli_env)
        assert result.exit_code == 1

    def test_missing_gtin(self, cli_env):
        result = runner.invoke(app, ["create-dynamic", "--cid", "bafyA"], env=cli_env)
        assert result.exit_code == 1
        assert "GTIN" in result.output

    def test_create_dynamic_registers_pending_link(self, cli_env):
        result = runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA"], env=cli_env)
        assert result.exit_code == 0, result.output

        link = _links(cli_env).require(KEY)
        assert link.locked_id == PENDING
        record = _ledger(cli_env).read_by_id(link.dynamic_id)
        assert json.loads(record.state)["latest_cid"] == "bafyA"
        assert json.loads(record.state)["seq"] == 1

    def test_create_locked_requires_link(self, cli_env):
        result = runner.invoke(app, ["create-locked", *GS1, "--cid", "bafyA"], env=cli_env)
        assert result.exit_code == 1
        assert _links(cli_env).lookup(KEY) is None

    def test_full_flow(self, cli_env):
        assert runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA"], env=cli_env).exit_code == 0

        # CID defaults to the Dynamic latest_cid
        result = runner.invoke(app, ["create-locked", *GS1], env=cli_env)
        assert result.exit_code == 0, result.output
        link = _links(cli_env).require(KEY)
        assert link.is_sealed

        result = runner.invoke(
            app, ["verify", link.dynamic_id, link.locked_id, "--json"], env=cli_env
        )
        assert result.exit_code == 0, result.output
        assert json.loads(result.stdout)["verified"] is True

        result = runner.invoke(app, ["update-state", *GS1, "--cid", "bafyB"], env=cli_env)
        assert result.exit_code == 0, result.output

        result = runner.invoke(app, ["read", link.dynamic_id], env=cli_env)
        assert result.exit_code == 0, result.output
        summary = json.loads(result.stdout)
        assert summary["latest_cid"] == "bafyB"
        assert summary["seq"] == 2
        assert summary["version"] == 2
        assert summary["description"] == "DPP - estado vivo"

        result = runner.invoke(
            app, ["verify", link.dynamic_id, link.locked_id, "--json"], env=cli_env
        )
        assert result.exit_code == 2
        assert json.loads(result.stdout)["verified"] is False

        result = runner.invoke(app, ["resolve", *GS1], env=cli_env)
        assert result.exit_code == 0, result.output
        body = json.loads(result.stdout)
        assert body["verified"] is False
        assert body["state"]["latest_cid"] == "bafyB"
        assert body["locked"]["cid"] == "bafyA"
        assert body["manifest"] == {"fetched": False}

    def test_explicit_seq(self, cli_env):
        runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA", "--seq", "5"], env=cli_env)
        runner.invoke(app, ["update-state", *GS1, "--cid", "bafyB", "--seq", "42"], env=cli_env)
        link = _links(cli_env).require(KEY)
        assert json.loads(_ledger(cli_env).read_by_id(link.dynamic_id).state)["seq"] == 42

    def test_unprefixed_dynamic_id_in_link_row(self, cli_env):
        runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA"], env=cli_env)
        links = _links(cli_env)
        dynamic_id = links.require(KEY).dynamic_id
        links.upsert_mutable(KEY, dynamic_id[2:])

        result = runner.invoke(app, ["update-state", *GS1, "--cid", "bafyB"], env=cli_env)
        assert result.exit_code == 0, result.output
        record = _ledger(cli_env).read_by_id(dynamic_id)
        assert record.state_version_count == 2

        result = runner.invoke(app, ["create-locked", *GS1], env=cli_env)
        assert result.exit_code == 0, result.output
        locked_id = links.require(KEY).locked_id
        assert json.loads(_ledger(cli_env).read_by_id(locked_id).state)["cid"] == "bafyB"

    def test_update_unknown_key(self, cli_env):
        result = runner.invoke(app, ["update-state", *GS1, "--cid", "bafyB"], env=cli_env)
        assert result.exit_code == 1

    def test_set_metadata(self, cli_env):
        runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA"], env=cli_env)
        dynamic_id = _links(cli_env).require(KEY).dynamic_id

        result = runner.invoke(app, ["set-metadata", dynamic_id[2:], "audited"], env=cli_env)
        assert result.exit_code == 0, result.output
        assert _ledger(cli_env).read_by_id(dynamic_id).updatable_metadata == "audited"

    def test_history(self, cli_env):
        runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA"], env=cli_env)
        runner.invoke(app, ["update-state", *GS1, "--cid", "bafyB"], env=cli_env)
        dynamic_id = _links(cli_env).require(KEY).dynamic_id
        assert [r.version for r in _ledger(cli_env).state_history(dynamic_id)] == [1, 2]

        result = runner.invoke(app, ["history", dynamic_id], env=cli_env)
        assert result.exit_code == 0

    def test_resolve_pending(self, cli_env):
        runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA"], env=cli_env)
        result = runner.invoke(app, ["resolve", *GS1], env=cli_env)
        assert result.exit_code == 1
        assert "LOCKED_NOT_READY" in result.output

    def test_links_listing(self, cli_env):
        result = runner.invoke(app, ["links"], env=cli_env)
        assert result.exit_code == 0
        assert "No links registered" in result.output

        runner.invoke(app, ["create-dynamic", *GS1, "--cid", "bafyA"], env=cli_env)
        result = runner.invoke(app, ["links"], env=cli_env)
        assert result.exit_code == 0
        assert "00012345600012" in result.output

    def test_read_unknown(self, cli_env):
        result = runner.invoke(app, ["read", "0x" + "0" * 64], env=cli_env)
        assert result.exit_code == 1


# ---------------------------------------------------------------------------
# Test: GS1 utilities
# ---------------------------------------------------------------------------


class TestGs1Commands:
    def test_parse_link(self):
        result = runner.invoke(
            app, ["parse-link", "https://id.example.com/resolver/01/00012345600012/10/L001/21/S0001"]
        )
        assert result.exit_code == 0
        assert json.loads(result.stdout) == {
            "gtin": "00012345600012",
            "lot": "L001",
            "serial": "S0001",
            "gtin_valid": True,
        }

    def test_parse_link_rejects_other_urls(self):
        result = runner.invoke(app, ["parse-link", "https://example.com/nothing"])
        assert result.exit_code == 1

    def test_epcis_to_file(self, cli_env, tmp_path: Path):
        target = tmp_path / "out" / "event.json"
        result = runner.invoke(app, ["epcis", *GS1, "--output", str(target)], env=cli_env)
        assert result.exit_code == 0, result.output
        event = json.loads(target.read_text(encoding="utf-8"))
        assert event["epcList"] == ["urn:epc:id:sgtin:0012345.060001.S0001"]

    def test_epcis_requires_serial(self, cli_env):
        result = runner.invoke(
            app, ["epcis", "--gtin", "00012345600012", "--lot", "L001"], env=cli_env
        )
        assert result.exit_code == 1
