"""Shared fixtures: canned PCP output and a fake command runner."""

import os
from typing import Callable

import pytest

from pgpool_exporter.config import Config, PCPConfig
from pgpool_exporter.pcp.base import BaseCommandRunner
from pgpool_exporter.pcp.client import PCPClient

PRIMARY_NODE_INFO = """\
Hostname               : db-primary-1
Port                   : 5432
Status                 : 2
Weight                 : 0.500000
Status Name            : up
Role                   : primary
Replication Delay      : 0
Replication State      : 
Replication Sync State : 
Last Status Change     : 2024-03-01 10:15:42
"""

STANDBY_NODE_INFO = """\
Hostname               : db-standby-1
Port                   : 5433
Status                 : 1
Weight                 : 0.500000
Status Name            : waiting
Role                   : standby
Replication Delay      : 128
Replication State      : streaming
Replication Sync State : async
Last Status Change     : 2024-03-01 10:16:03
"""

DOWN_NODE_INFO = """\
Hostname               : db-standby-2
Port                   : 5434
Status                 : 3
Weight                 : 0.000000
Status Name            : down
Role                   : standby
Replication Delay      : 0
Last Status Change     : 2024-03-01 11:02:10
"""

WATCHDOG_INFO = """\
Total Nodes          : 3
Remote Nodes         : 2
Quorum state         : QUORUM EXIST
Alive Remote Nodes   : 1
VIP up on local node : YES
Leader Node Name     : pgpool-1:9999 Linux pgpool-1
Leader Host Name     : pgpool-1
"""

PROC_INFO_COLUMNS = """\
app_db alice 1709287200 1709287260 3 0 1 12345 1 5432 0 0 1
app_db alice 1709287200 1709287260 3 0 1 12346 1 5432 0 0 1
reports bob 1709287200 1709287260 3 0 1 12347 1 5432 0 0 0
    
short line with only a few tokens
"""

PROC_COUNT = "12345 12346 12347 12348\n"


class FakeRunner(BaseCommandRunner):
    """Command runner answering from a table instead of spawning processes.

    Responses are keyed by executable name. A value may be a string or
    bytes (the standard output), a ``(exit_code, stdout, stderr)`` tuple, or a callable
    taking the argv and returning either of those.
    """

    def __init__(self, pcp_config: PCPConfig, responses: dict) -> None:
        super().__init__(pcp_config, passfile=None)
        self.responses = responses
        self.calls: list[list[str]] = []
        self.envs: list[dict | None] = []

    def execute_command(self, argv: list[str], env: dict | None) -> tuple[int, str, str]:
        self.calls.append(argv)
        self.envs.append(env)
        response = self.responses.get(os.path.basename(argv[0]), (127, "", "not found"))
        if callable(response):
            response = response(argv)
        if isinstance(response, (str, bytes)):
            return 0, response, ""
        return response

    def commands(self) -> list[str]:
        return [os.path.basename(argv[0]) for argv in self.calls]


def node_info_by_id(outputs: dict[int, object]) -> Callable[[list[str]], object]:
    """Answer pcp_node_info depending on the --node-id argument."""

    def respond(argv: list[str]) -> object:
        for arg in argv:
            if arg.startswith("--node-id="):
                return outputs[int(arg.split("=", 1)[1])]
        return (1, "", "missing node id")

    return respond


@pytest.fixture
def pcp_config() -> PCPConfig:
    return PCPConfig(hostname="pgpool.local", port=9898, username="pcpadmin", password="secret")


@pytest.fixture
def config(pcp_config) -> Config:
    return Config(pcp=pcp_config)


@pytest.fixture
def healthy_responses() -> dict:
    return {
        "pcp_node_count": "3\n",
        "pcp_node_info": node_info_by_id({
            0: PRIMARY_NODE_INFO,
            1: STANDBY_NODE_INFO,
            2: DOWN_NODE_INFO,
        }),
        "pcp_proc_count": PROC_COUNT,
        "pcp_proc_info": PROC_INFO_COLUMNS,
        "pcp_watchdog_info": WATCHDOG_INFO,
    }


@pytest.fixture
def fake_runner(pcp_config, healthy_responses) -> FakeRunner:
    return FakeRunner(pcp_config, healthy_responses)


@pytest.fixture
def client(fake_runner, pcp_config) -> PCPClient:
    return PCPClient(fake_runner, pcp_config)
