"""HTTP boundary for the savings ledger."""

from .app import create_app

__all__ = ["create_app"]
