"""Runtime configuration: env-driven via pydantic-settings.

Reads from a ``.env`` file and ``DPP_*`` environment variables. Library
code never reads settings itself; entry points (CLI, server factory)
build a ``ResolverSettings`` and pass the pieces down.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from dpplink.bridge.gateway import DEFAULT_GATEWAY_URL
from dpplink.bridge.signer import DEFAULT_DERIVATION_PATH
from dpplink.models.links import ConflictPolicy, LinkKey

_LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"


class ResolverSettings(BaseSettings):
    """Resolver and notarization settings with environment overrides.

    Examples
    --------
    Override via environment::

        export DPP_LEDGER_PATH=/data/ledger.db
        export DPP_IPFS_GATEWAY_URL=https://my-gateway.mypinata.cloud/ipfs
        export DPP_IPFS_GATEWAY_TIMEOUT_SECONDS=10

    Or via .env file::

        DPP_MNEMONIC="word1 word2 ..."
        DPP_CORS_ORIGINS=https://scan.example.com,https://audit.example.com
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="DPP_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Storage paths
    ledger_path: Path = Path(".dpplink/ledger.db")
    links_db_path: Path = Path(".dpplink/links.db")

    # IPFS gateway
    ipfs_gateway_url: str = DEFAULT_GATEWAY_URL
    pinata_jwt: str = ""
    ipfs_gateway_timeout_seconds: float = 15.0

    # Ledger reads
    ledger_read_timeout_seconds: float = 30.0

    # HTTP server
    host: str = "0.0.0.0"
    port: int = 3000
    cors_origins: str = ""  # comma separated

    # Signer (notarization CLI only)
    mnemonic: str = ""
    derivation_path: str = DEFAULT_DERIVATION_PATH

    # Link directory
    link_conflict_policy: ConflictPolicy = ConflictPolicy.PRESERVE_LOCKED

    # CLI defaults
    default_gtin: str = ""
    default_lot: str = ""
    default_serial: str = ""
    manifest_cid: str = ""
    notarization_description: str = "DPP - estado vivo"
    notarization_metadata: str = "dpplink"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def cors_origin_list(self) -> list[str]:
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]

    def default_key(
        self, gtin: str | None = None, lot: str | None = None, serial: str | None = None
    ) -> LinkKey:
        """Build a GS1 key from explicit values, falling back to the DPP_DEFAULT_* settings."""
        resolved_gtin = gtin or self.default_gtin
        resolved_lot = lot or self.default_lot
        if not resolved_gtin or not resolved_lot:
            raise ValueError(
                "GTIN and lot are required. Pass --gtin/--lot or set DPP_DEFAULT_GTIN/DPP_DEFAULT_LOT."
            )
        resolved_serial = serial if serial is not None else self.default_serial
        return LinkKey(gtin=resolved_gtin, lot=resolved_lot, serial=resolved_serial)


def load_settings(**overrides: object) -> ResolverSettings:
    return ResolverSettings(**overrides)


def configure_logging(level: str = "INFO") -> None:
    """Root logging setup for entry points."""
    logging.basicConfig(level=level.upper(), format=_LOG_FORMAT, force=True)
