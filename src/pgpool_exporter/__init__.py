"""
Pgpool2 Exporter - Prometheus metrics for the Pgpool-II connection pooler.

Runs the PCP administrative commands on every scrape and turns their text
reports into node, connection and watchdog gauges.
"""

__version__ = "1.0.0"

from pgpool_exporter.config import Config, PCPConfig, WebConfig
from pgpool_exporter.models import NodeInfo, ProcInfo, ProcInfoSummary, WatchdogInfo
from pgpool_exporter.monitor import ScrapeOrchestrator, ScrapeResult

__all__ = [
    "Config",
    "PCPConfig",
    "WebConfig",
    "NodeInfo",
    "ProcInfo",
    "ProcInfoSummary",
    "WatchdogInfo",
    "ScrapeOrchestrator",
    "ScrapeResult",
]
