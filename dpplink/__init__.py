"""dpplink: GS1 Digital Link resolver for notarized Digital Product Passports.

v0.1.0:
  - Dynamic (mutable) vs Locked (immutable) notarization cross-check
  - SQLite-backed notarization ledger with append-only version history
  - dpp_links directory with explicit PENDING sentinel and conflict policy
  - Ed25519 signer derived from a BIP-39 mnemonic (SLIP-0010) via PyNaCl
  - IPFS gateway manifest fetch via httpx
  - FastAPI resolver (/resolver/01/{gtin}/10/{lot}/21/{serial})
  - Typer + Rich CLI for notarization, inspection and serving
"""

__version__ = "0.1.0"
__description__ = "GS1 Digital Link resolver with Dynamic/Locked notarization verification"

__all__ = ["__version__"]
