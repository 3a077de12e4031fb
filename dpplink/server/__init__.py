"""HTTP surface: FastAPI app factory and shared resolver context."""

from dpplink.server.app import create_app
from dpplink.server.context import ResolverContext

__all__ = ["create_app", "ResolverContext"]
