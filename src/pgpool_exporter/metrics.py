"""Names, help texts and labels of the exported gauges."""

from typing import NamedTuple

NAMESPACE = "pgpool2"


class MetricSpec(NamedTuple):
    name: str
    documentation: str
    labels: tuple[str, ...] = ()


def _fqname(*parts: str) -> str:
    return "_".join([NAMESPACE, *(p for p in parts if p)])


LAST_SCRAPE_ERROR = MetricSpec(
    _fqname("last_scrape_error"),
    "Whether the last scrape of metrics from Pgpool2 resulted in an error (1 for error, 0 for success)",
)
LAST_SCRAPE_DURATION = MetricSpec(
    _fqname("last_scrape_duration_seconds"),
    "Duration of the last scrape of metrics from Pgpool2",
)
NODE_COUNT = MetricSpec(
    _fqname("node_count"),
    "Displays the total number of database nodes",
)
NODE_INFO = MetricSpec(
    _fqname("node_info"),
    "Displays the information of node, the value is the node status code",
    (
        "id",
        "node",
        "port",
        "weight",
        "role",
        "replication_delay",
        "replication_state",
        "replication_sync_state",
        "last_status_change",
    ),
)
PROC_COUNT = MetricSpec(
    _fqname("proc_count"),
    "Displays number of all Pgpool-II children processes",
)
ACTIVE_CONNECTIONS = MetricSpec(
    _fqname("frontend_active_connections"),
    "Displays number of all active connections to all Pgpool-II children processes",
    ("database",),
)
INACTIVE_CONNECTIONS = MetricSpec(
    _fqname("frontend_inactive_connections"),
    "Displays number of all inactive connections to all Pgpool-II children processes",
    ("database",),
)
WATCHDOG_TOTAL_NODES = MetricSpec(
    _fqname("watchdog", "nodes_total"),
    "Watchdog total nodes",
)
WATCHDOG_REMOTE_NODES = MetricSpec(
    _fqname("watchdog", "nodes_remote"),
    "Watchdog remote nodes",
)
WATCHDOG_ALIVE_REMOTE_NODES = MetricSpec(
    _fqname("watchdog", "nodes_alive_remote"),
    "Watchdog alive remote nodes",
)
WATCHDOG_QUORUM_STATE = MetricSpec(
    _fqname("watchdog", "quorum_state"),
    "Watchdog quorum state (1 is ok)",
)
WATCHDOG_VIP = MetricSpec(
    _fqname("watchdog", "vip"),
    "Watchdog virtual IP",
)

ALL_METRICS: tuple[MetricSpec, ...] = (
    LAST_SCRAPE_ERROR,
    LAST_SCRAPE_DURATION,
    NODE_COUNT,
    NODE_INFO,
    PROC_COUNT,
    ACTIVE_CONNECTIONS,
    INACTIVE_CONNECTIONS,
    WATCHDOG_TOTAL_NODES,
    WATCHDOG_REMOTE_NODES,
    WATCHDOG_ALIVE_REMOTE_NODES,
    WATCHDOG_QUORUM_STATE,
    WATCHDOG_VIP,
)
