"""PCP command adapter."""

from pgpool_exporter.pcp.base import BaseCommandRunner
from pgpool_exporter.pcp.client import PCPClient
from pgpool_exporter.pcp.local import SubprocessRunner

__all__ = ["BaseCommandRunner", "PCPClient", "SubprocessRunner"]
