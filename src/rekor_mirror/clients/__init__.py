"""Clients for external services."""

from rekor_mirror.clients.rekor import RekorClient

__all__ = ["RekorClient"]
