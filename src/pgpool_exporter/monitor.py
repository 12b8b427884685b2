"""Scrape cycle orchestration."""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, NamedTuple

from pgpool_exporter import metrics
from pgpool_exporter.config import Config, FailurePolicy
from pgpool_exporter.errors import PgpoolExporterError
from pgpool_exporter.metrics import MetricSpec
from pgpool_exporter.models import NodeInfo, ProcInfoSummary, WatchdogInfo
from pgpool_exporter.pcp.client import PCPClient

logger = logging.getLogger(__name__)


class Observation(NamedTuple):
    """One gauge sample produced by a scrape."""

    metric: MetricSpec
    value: float
    labels: tuple[str, ...] = ()


Sink = Callable[[Observation], None]


class ScrapeAborted(Exception):
    """Raised internally to stop a fail-fast cycle."""


@dataclass
class ScrapeResult:
    """Everything one scrape cycle produced."""

    observations: list[Observation] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    duration: float = 0.0
    node_count: int | None = None
    nodes: dict[int, NodeInfo] = field(default_factory=dict)
    proc_count: int | None = None
    summary: ProcInfoSummary | None = None
    watchdog: WatchdogInfo | None = None

    @property
    def error(self) -> bool:
        return bool(self.errors)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": self.error,
            "errors": list(self.errors),
            "duration_seconds": self.duration,
            "node_count": self.node_count,
            "nodes": {str(i): n.to_dict() for i, n in self.nodes.items()},
            "proc_count": self.proc_count,
            "connections": self.summary.to_dict() if self.summary else None,
            "watchdog": self.watchdog.to_dict() if self.watchdog else None,
        }


class ScrapeOrchestrator:
    """Runs the PCP commands of one scrape in order and emits gauges."""

    def __init__(
        self,
        client: PCPClient,
        config: Config,
        sink: Sink | None = None,
    ) -> None:
        """Initialize orchestrator.

        Args:
            client: PCP client used for every command.
            config: Exporter configuration (failure policy, watchdog).
            sink: Optional callback receiving every observation as emitted.
        """
        self.client = client
        self.config = config
        self.sink = sink

    @property
    def fail_fast(self) -> bool:
        return self.config.failure_policy == FailurePolicy.FAIL_FAST

    def run(self) -> ScrapeResult:
        """Execute one full scrape cycle.

        The duration and error gauges are emitted exactly once, after
        every other observation, whatever happened during the cycle.
        """
        result = ScrapeResult()
        started = time.perf_counter()
        try:
            self._collect(result)
        except ScrapeAborted:
            logger.debug("Scrape aborted after first failure")
        except Exception as e:
            logger.exception("Unexpected error during scrape")
            result.errors.append(f"unexpected error: {e}")
        finally:
            result.duration = time.perf_counter() - started
            self._emit(result, metrics.LAST_SCRAPE_DURATION, result.duration)
            self._emit(result, metrics.LAST_SCRAPE_ERROR, 1.0 if result.error else 0.0)

        logger.debug(
            f"Scrape finished in {result.duration:.3f}s with {len(result.errors)} error(s)"
        )
        return result

    def _collect(self, result: ScrapeResult) -> None:
        steps: list[tuple[str, Callable[[ScrapeResult], None]]] = [
            ("node metrics", self.collect_node_metrics),
            ("proc count", self.collect_proc_count_metrics),
            ("proc info", self.collect_proc_info_metrics),
        ]
        if self.config.pcp.watchdog:
            steps.append(("watchdog info", self.collect_watchdog_metrics))

        for name, step in steps:
            try:
                step(result)
            except PgpoolExporterError as e:
                self._fail(result, f"{name} error: {e}")

    def _fail(self, result: ScrapeResult, message: str) -> None:
        logger.error(message)
        result.errors.append(message)
        if self.fail_fast:
            raise ScrapeAborted(message)

    def _emit(
        self,
        result: ScrapeResult,
        metric: MetricSpec,
        value: float,
        *labels: str,
    ) -> None:
        observation = Observation(metric, float(value), labels)
        result.observations.append(observation)
        if self.sink is not None:
            self.sink(observation)

    def collect_node_metrics(self, result: ScrapeResult) -> None:
        """Emit the node count and one info gauge per node, in ordinal order."""
        node_count = self.client.node_count()
        result.node_count = node_count
        self._emit(result, metrics.NODE_COUNT, node_count)

        for node_id in range(node_count):
            try:
                node = self.client.node_info(node_id)
            except PgpoolExporterError as e:
                self._fail(result, f"node info ({node_id}) error: {e}")
                continue

            result.nodes[node_id] = node
            self._emit(
                result,
                metrics.NODE_INFO,
                node.status_code,
                str(node_id),
                node.hostname,
                str(node.port),
                f"{node.weight:.6f}",
                node.role,
                f"{node.replication_delay:.6f}",
                node.replication_state,
                node.replication_sync_state,
                node.last_status_change,
            )

    def collect_proc_count_metrics(self, result: ScrapeResult) -> None:
        procs = self.client.proc_count()
        result.proc_count = len(procs)
        self._emit(result, metrics.PROC_COUNT, len(procs))

    def collect_proc_info_metrics(self, result: ScrapeResult) -> None:
        """Emit active and inactive connection counts per database."""
        summary = self.client.summarize(self.client.proc_info())
        result.summary = summary
        for database, count in summary.active.items():
            self._emit(result, metrics.ACTIVE_CONNECTIONS, count, database)
        for database, count in summary.inactive.items():
            self._emit(result, metrics.INACTIVE_CONNECTIONS, count, database)

    def collect_watchdog_metrics(self, result: ScrapeResult) -> None:
        watchdog = self.client.watchdog_info()
        result.watchdog = watchdog
        self._emit(result, metrics.WATCHDOG_TOTAL_NODES, watchdog.total_nodes)
        self._emit(result, metrics.WATCHDOG_REMOTE_NODES, watchdog.remote_nodes)
        self._emit(result, metrics.WATCHDOG_ALIVE_REMOTE_NODES, watchdog.alive_remote_nodes)
        self._emit(result, metrics.WATCHDOG_QUORUM_STATE, watchdog.quorum_state_code)
        self._emit(result, metrics.WATCHDOG_VIP, 1.0 if watchdog.vip else 0.0)
