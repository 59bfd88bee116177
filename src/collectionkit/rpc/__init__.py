"""Refresh notifications over WebSockets."""

from .client import ClientState, RefreshClient
from .server import RefreshServer

__all__ = ["ClientState", "RefreshClient", "RefreshServer"]
