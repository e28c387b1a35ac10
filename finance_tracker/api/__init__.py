"""HTTP surface."""

from finance_tracker.api.app import create_app

__all__ = ["create_app"]
