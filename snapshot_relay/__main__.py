"""
Snapshot Relay CLI entry point.

Usage:
    python -m snapshot_relay [serve|refresh|list]
"""

from .cli import app

if __name__ == "__main__":
    app()
