"""Tests for the PCP command adapter."""

import logging
import os
from pathlib import Path

import pytest

from conftest import PRIMARY_NODE_INFO, FakeRunner
from pgpool_exporter.config import CredentialMode, PCPConfig
from pgpool_exporter.errors import DecodeError, ExecutionFailure
from pgpool_exporter.parsers import ProcFormat
from pgpool_exporter.pcp import PCPClient, SubprocessRunner


class TestBuildArgs:
    """Tests for argument vector and environment construction."""

    def test_passfile_mode(self, pcp_config):
        runner = SubprocessRunner(pcp_config, Path("/tmp/pgpool2abc"))
        argv = runner.build_args("/usr/sbin/pcp_node_info", "--node-id=1", "-v")
        assert argv == [
            "/usr/sbin/pcp_node_info",
            "--username=pcpadmin",
            "--host=pgpool.local",
            "--port=9898",
            "--no-password",
            "--node-id=1",
            "-v",
        ]
        assert runner.build_env() == {"PCPPASSFILE": "/tmp/pgpool2abc"}

    def test_positional_mode(self):
        pcp = PCPConfig(
            hostname="10.0.0.1",
            port=9898,
            username="admin",
            password="secret",
            credential_mode=CredentialMode.ARGUMENTS,
            timeout=7,
        )
        runner = SubprocessRunner(pcp)
        argv = runner.build_args("/usr/sbin/pcp_node_info", "0")
        assert argv == ["/usr/sbin/pcp_node_info", "7", "10.0.0.1", "9898", "admin", "secret", "0"]
        assert runner.build_env() is None


class TestSubprocessRunner:
    """Tests executing real local programs."""

    @pytest.mark.skipif(not os.path.exists("/bin/echo"), reason="requires /bin/echo")
    def test_run_returns_stdout(self, pcp_config):
        runner = SubprocessRunner(pcp_config, Path("/tmp/pcp.pass"))
        output = runner.run("/bin/echo", "hello")
        assert output.strip() == "--username=pcpadmin --host=pgpool.local --port=9898 --no-password hello"

    @pytest.mark.skipif(not os.path.exists("/bin/false"), reason="requires /bin/false")
    def test_non_zero_exit(self, pcp_config):
        runner = SubprocessRunner(pcp_config)
        with pytest.raises(ExecutionFailure) as exc_info:
            runner.run("/bin/false")
        assert exc_info.value.returncode != 0
        assert exc_info.value.command == "/bin/false"

    @pytest.mark.skipif(not os.path.exists("/bin/false"), reason="requires /bin/false")
    def test_non_zero_exit_not_logged_as_error(self, pcp_config, caplog):
        runner = SubprocessRunner(pcp_config)
        with caplog.at_level(logging.DEBUG, logger="pgpool_exporter.pcp"):
            with pytest.raises(ExecutionFailure):
                runner.run("/bin/false")
        assert not [r for r in caplog.records if r.levelno >= logging.ERROR]
        assert "/bin/false exited with status 1" in caplog.text

    def test_missing_executable(self, pcp_config, tmp_path):
        runner = SubprocessRunner(pcp_config)
        missing = str(tmp_path / "pcp_node_count")
        with pytest.raises(ExecutionFailure) as exc_info:
            runner.run(missing)
        assert exc_info.value.returncode is None
        assert missing in str(exc_info.value)


class TestPCPClient:
    """Tests for PCPClient command wiring."""

    def test_node_count(self, client, fake_runner):
        assert client.node_count() == 3
        assert fake_runner.calls[0][0] == "/usr/sbin/pcp_node_count"

    def test_node_info_arguments(self, pcp_config):
        runner = FakeRunner(pcp_config, {"pcp_node_info": PRIMARY_NODE_INFO})
        node = PCPClient(runner).node_info(4)
        assert node.hostname == "db-primary-1"
        assert runner.calls[0][-2:] == ["--node-id=4", "-v"]

    def test_node_info_positional_arguments(self):
        pcp = PCPConfig(password="secret", credential_mode=CredentialMode.ARGUMENTS)
        runner = FakeRunner(pcp, {"pcp_node_info": PRIMARY_NODE_INFO})
        PCPClient(runner).node_info(2)
        assert runner.calls[0][-2:] == ["2", "-v"]

    def test_proc_info_all(self, client, fake_runner):
        procs = client.proc_info()
        assert len(procs) == 3
        assert fake_runner.calls[0][-1] == "--all"

    def test_proc_info_pattern_format(self):
        pcp = PCPConfig(
            password="secret",
            credential_mode=CredentialMode.ARGUMENTS,
            proc_format=ProcFormat.PATTERN,
        )
        runner = FakeRunner(pcp, {"pcp_proc_info": "app_db 1\napp_db 0\n"})
        procs = PCPClient(runner).proc_info()
        assert [p.connected for p in procs] == [True, False]
        assert runner.calls[0][-1] == "secret"

    def test_proc_count(self, client):
        assert len(client.proc_count()) == 4

    def test_watchdog_info(self, client, fake_runner):
        info = client.watchdog_info()
        assert info.quorum_state_code == 1
        assert fake_runner.calls[0][-1] == "-v"

    def test_command_failure(self, pcp_config):
        runner = FakeRunner(pcp_config, {"pcp_node_count": (1, "", "ERROR: connection refused\n")})
        with pytest.raises(ExecutionFailure, match="connection refused"):
            PCPClient(runner).node_count()

    def test_bytes_output_is_decoded(self, pcp_config):
        runner = FakeRunner(pcp_config, {"pcp_node_count": b"2\n"})
        assert PCPClient(runner).node_count() == 2

    def test_non_utf8_output(self, pcp_config):
        runner = FakeRunner(pcp_config, {"pcp_proc_info": b"caf\xe9 1\n"})
        with pytest.raises(DecodeError, match="not UTF-8"):
            PCPClient(runner).proc_info()

    def test_non_utf8_stderr_on_failure(self, pcp_config):
        runner = FakeRunner(pcp_config, {"pcp_node_count": (1, b"", b"ERROR: caf\xe9")})
        with pytest.raises(ExecutionFailure, match="ERROR: caf"):
            PCPClient(runner).node_count()

    def test_custom_bin_dir(self):
        pcp = PCPConfig(password="secret", bin_dir="/opt/pgpool/bin")
        runner = FakeRunner(pcp, {"pcp_node_count": "0\n"})
        PCPClient(runner).node_count()
        assert runner.calls[0][0] == "/opt/pgpool/bin/pcp_node_count"
