"""HTTP surface of the exporter."""

from pgpool_exporter.server.app import create_app

__all__ = ["create_app"]
