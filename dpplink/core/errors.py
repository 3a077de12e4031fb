"""Error taxonomy for the resolver.

Every error the resolution path can abort with carries a stable
``error_code`` and the HTTP status the server maps it to. Payload decode
problems are not errors: they become notes on the verdict.

    NotFound              404  link or ledger record does not exist
    NotReady              409  link exists, Locked snapshot not attached yet
    UpstreamUnavailable   502/503  ledger or IPFS gateway unreachable
    anything else         500  UNEXPECTED_ERROR
"""

from __future__ import annotations

from typing import Any


class ResolverError(RuntimeError):
    """Base class for errors with a structured JSON representation."""

    error_code: str = "UNEXPECTED_ERROR"
    http_status: int = 500
    default_message: str = "Error inesperado en el resolver."

    def __init__(self, message: str = "", *, details: dict[str, Any] | None = None) -> None:
        self.message = message or self.default_message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        return {"error": self.error_code, "message": self.message}


class NotFoundError(ResolverError):
    http_status = 404
    error_code = "NOT_FOUND"


class LinkNotFoundError(NotFoundError):
    """No dpp_links row for the requested GS1 key."""

    error_code = "NO_MAPPING"
    default_message = "No se encontro una asociacion para el identificador GS1 proporcionado."


class RecordNotFoundError(NotFoundError):
    """The ledger does not know the record ID (or the ID is malformed)."""

    error_code = "RECORD_NOT_FOUND"
    default_message = "Notarization not found on the ledger."

    def __init__(self, record_id: str, message: str = "") -> None:
        self.record_id = record_id
        super().__init__(
            message or f"Notarization {record_id!r} not found on the ledger.",
            details={"record_id": record_id},
        )


class LockedNotReadyError(ResolverError):
    """The link exists but its Locked side is still PENDING. Retry later."""

    http_status = 409
    error_code = "LOCKED_NOT_READY"
    default_message = "Locked notarization not yet registered for this GS1 identifier."


class UpstreamUnavailableError(ResolverError):
    http_status = 503
    error_code = "UPSTREAM_UNAVAILABLE"


class LedgerUnavailableError(UpstreamUnavailableError):
    """Transient ledger failure; distinct from RecordNotFoundError."""

    error_code = "LEDGER_UNAVAILABLE"
    default_message = "Ledger backend unavailable."


class ManifestUnavailableError(UpstreamUnavailableError):
    """IPFS gateway fetch failed after a successful verification."""

    http_status = 502
    error_code = "IPFS_UNAVAILABLE"
    default_message = "Fallo al acceder al gateway IPFS."
