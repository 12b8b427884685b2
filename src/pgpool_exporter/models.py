"""Data models for decoded PCP command output."""

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any


class NodeStatus(int, Enum):
    """Backend node status codes reported by pcp_node_info."""

    INITIALIZATION = 0
    UP_NO_CONNECTIONS = 1
    UP_POOLED = 2
    DOWN = 3


NODE_STATUS_UNKNOWN = "Unknown node status"

NODE_STATUS_LABELS = MappingProxyType({
    NodeStatus.INITIALIZATION: "Initialization",
    NodeStatus.UP_NO_CONNECTIONS: "Node is up. No connections yet",
    NodeStatus.UP_POOLED: "Node is up. Connections are pooled",
    NodeStatus.DOWN: "Node is down",
})


class QuorumState(int, Enum):
    """Watchdog quorum states, ordered as pgpool's pcp frontend reports them."""

    UNKNOWN = -3
    NO_MASTER_NODE = -2
    ABSENT = -1
    ON_THE_EDGE = 0
    EXIST = 1


QUORUM_STATE_CODES = MappingProxyType({
    "UNKNOWN": QuorumState.UNKNOWN,
    "NO MASTER NODE": QuorumState.NO_MASTER_NODE,
    "QUORUM ABSENT": QuorumState.ABSENT,
    "QUORUM IS ON THE EDGE": QuorumState.ON_THE_EDGE,
    "QUORUM EXIST": QuorumState.EXIST,
})


def node_status_label(code: int) -> str:
    """Human readable label for a node status code."""
    return NODE_STATUS_LABELS.get(code, NODE_STATUS_UNKNOWN)


def quorum_state_code(state: str) -> int:
    """Integer code for a quorum state label, UNKNOWN when unmapped."""
    return int(QUORUM_STATE_CODES.get(state, QuorumState.UNKNOWN))


@dataclass
class NodeInfo:
    """One backend node as reported by pcp_node_info."""

    hostname: str = ""
    port: int = 0
    status_code: int = 0
    status: str = ""
    weight: float = 0.0

    # Only present in verbose output of pgpool 4.x
    role: str = ""
    replication_delay: float = 0.0
    replication_state: str = ""
    replication_sync_state: str = ""
    last_status_change: str = ""

    def set_status_code(self, code: int) -> None:
        self.status_code = code
        self.status = node_status_label(code)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "hostname": self.hostname,
            "port": self.port,
            "status_code": self.status_code,
            "status": self.status,
            "weight": self.weight,
            "role": self.role,
            "replication_delay": self.replication_delay,
            "replication_state": self.replication_state,
            "replication_sync_state": self.replication_sync_state,
            "last_status_change": self.last_status_change,
        }


@dataclass
class ProcInfo:
    """One pooled child process connection slot."""

    database: str
    connected: bool = False
    username: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "database": self.database,
            "username": self.username,
            "connected": self.connected,
        }


@dataclass
class ProcInfoSummary:
    """Per-database connection counters folded from ProcInfo records."""

    active: dict[str, int] = field(default_factory=dict)
    inactive: dict[str, int] = field(default_factory=dict)

    def add(self, database: str, connected: bool) -> None:
        counters = self.active if connected else self.inactive
        counters[database] = counters.get(database, 0) + 1

    @property
    def databases(self) -> set[str]:
        return set(self.active) | set(self.inactive)

    def to_dict(self) -> dict[str, Any]:
        return {
            "active": dict(self.active),
            "inactive": dict(self.inactive),
        }


@dataclass
class WatchdogInfo:
    """Cluster watchdog and quorum state from pcp_watchdog_info."""

    total_nodes: int = 0
    remote_nodes: int = 0
    alive_remote_nodes: int = 0
    quorum_state: str = ""
    quorum_state_code: int = int(QuorumState.UNKNOWN)
    vip: bool = False

    def set_quorum_state(self, state: str) -> None:
        self.quorum_state = state
        self.quorum_state_code = quorum_state_code(state)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_nodes": self.total_nodes,
            "remote_nodes": self.remote_nodes,
            "alive_remote_nodes": self.alive_remote_nodes,
            "quorum_state": self.quorum_state,
            "quorum_state_code": self.quorum_state_code,
            "vip": self.vip,
        }
