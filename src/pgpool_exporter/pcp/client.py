"""High level access to the PCP commands."""

import io

from pgpool_exporter.config import CredentialMode, PCPConfig
from pgpool_exporter.models import NodeInfo, ProcInfo, ProcInfoSummary, WatchdogInfo
from pgpool_exporter.parsers import (
    decode_count,
    decode_node_info,
    decode_proc_count,
    decode_proc_info,
    decode_watchdog_info,
    summarize_procs,
)
from pgpool_exporter.pcp.base import BaseCommandRunner

# http://www.pgpool.net/docs/latest/en/html/pcp-commands.html
PCP_NODE_COUNT = "pcp_node_count"
PCP_NODE_INFO = "pcp_node_info"
PCP_PROC_COUNT = "pcp_proc_count"
PCP_PROC_INFO = "pcp_proc_info"
PCP_WATCHDOG_INFO = "pcp_watchdog_info"


class PCPClient:
    """Run PCP commands and decode their output into models."""

    def __init__(self, runner: BaseCommandRunner, pcp_config: PCPConfig | None = None) -> None:
        self.runner = runner
        self.config = pcp_config or runner.config

    @property
    def positional(self) -> bool:
        return self.config.credential_mode == CredentialMode.ARGUMENTS

    def _run(self, name: str, *args: str) -> str:
        return self.runner.run(self.config.command_path(name), *args)

    def node_count(self) -> int:
        """Number of backend nodes known to pgpool."""
        return decode_count(self._run(PCP_NODE_COUNT))

    def node_info(self, node_id: int) -> NodeInfo:
        """Verbose information about one backend node."""
        if self.positional:
            output = self._run(PCP_NODE_INFO, str(node_id), "-v")
        else:
            output = self._run(PCP_NODE_INFO, f"--node-id={node_id}", "-v")
        return decode_node_info(io.StringIO(output))

    def proc_count(self) -> list[str]:
        """Process ids of all pgpool children."""
        return decode_proc_count(self._run(PCP_PROC_COUNT))

    def proc_info(self) -> list[ProcInfo]:
        """Connection slot information for all pgpool children."""
        if self.positional:
            output = self._run(PCP_PROC_INFO)
        else:
            output = self._run(PCP_PROC_INFO, "--all")
        return decode_proc_info(io.StringIO(output), self.config.proc_format)

    def watchdog_info(self) -> WatchdogInfo:
        """Cluster watchdog and quorum state."""
        return decode_watchdog_info(io.StringIO(self._run(PCP_WATCHDOG_INFO, "-v")))

    @staticmethod
    def summarize(procs: list[ProcInfo]) -> ProcInfoSummary:
        return summarize_procs(procs)
