"""Prometheus collector exposing pgpool state.

Each call to ``collect`` runs a full scrape cycle; nothing is cached between
scrapes.
"""

import logging
from typing import Iterator

from prometheus_client import CollectorRegistry
from prometheus_client.core import GaugeMetricFamily
from prometheus_client.registry import Collector

from pgpool_exporter import __version__, metrics
from pgpool_exporter.config import Config
from pgpool_exporter.metrics import MetricSpec
from pgpool_exporter.monitor import Observation, ScrapeOrchestrator
from pgpool_exporter.pcp.client import PCPClient

logger = logging.getLogger(__name__)

EXPORTER_NAME = "pgpool2_exporter"


def _family(spec: MetricSpec) -> GaugeMetricFamily:
    return GaugeMetricFamily(spec.name, spec.documentation, labels=list(spec.labels))


def build_families(observations: list[Observation]) -> list[GaugeMetricFamily]:
    """Group observations into one gauge family per metric, in first-seen order."""
    families: dict[str, GaugeMetricFamily] = {}
    for observation in observations:
        spec = observation.metric
        family = families.get(spec.name)
        if family is None:
            family = families[spec.name] = _family(spec)
        family.add_metric(list(observation.labels), observation.value)
    return list(families.values())


class PgpoolCollector(Collector):
    """Custom collector running PCP commands on every scrape."""

    def __init__(self, client: PCPClient, config: Config) -> None:
        self.client = client
        self.config = config

    def describe(self) -> Iterator[GaugeMetricFamily]:
        # Avoid running PCP commands when the collector is registered.
        for spec in metrics.ALL_METRICS:
            yield _family(spec)

    def collect(self) -> Iterator[GaugeMetricFamily]:
        result = ScrapeOrchestrator(self.client, self.config).run()
        yield from build_families(result.observations)


def build_info_family() -> GaugeMetricFamily:
    family = GaugeMetricFamily(
        f"{EXPORTER_NAME}_build_info",
        f"A metric with a constant '1' value labeled by version from which {EXPORTER_NAME} was built.",
        labels=["version"],
    )
    family.add_metric([__version__], 1.0)
    return family


class BuildInfoCollector(Collector):
    """Constant gauge carrying the exporter version."""

    def collect(self) -> Iterator[GaugeMetricFamily]:
        yield build_info_family()


def create_registry(client: PCPClient, config: Config) -> CollectorRegistry:
    """Create a registry holding the pgpool and build info collectors."""
    registry = CollectorRegistry()
    registry.register(BuildInfoCollector())
    registry.register(PgpoolCollector(client, config))
    return registry
