"""Base PCP command runner."""

from abc import ABC, abstractmethod
from pathlib import Path

from pgpool_exporter.config import CredentialMode, PCPConfig
from pgpool_exporter.errors import DecodeError, ExecutionFailure


class BaseCommandRunner(ABC):
    """Runs PCP executables with the configured credentials prepended."""

    def __init__(self, pcp_config: PCPConfig, passfile: Path | None = None) -> None:
        """Initialize runner.

        Args:
            pcp_config: PCP connection settings.
            passfile: Password file exported as PCPPASSFILE in passfile mode.
        """
        self.config = pcp_config
        self.passfile = passfile

    def build_args(self, command: str, *args: str) -> list[str]:
        """Full argument vector for one command invocation."""
        pcp = self.config
        if pcp.credential_mode == CredentialMode.ARGUMENTS:
            common = [
                str(pcp.timeout),
                pcp.hostname,
                str(pcp.port),
                pcp.username,
                pcp.password or "",
            ]
        else:
            common = [
                f"--username={pcp.username}",
                f"--host={pcp.hostname}",
                f"--port={pcp.port}",
                # never prompt for a password
                "--no-password",
            ]
        return [command, *common, *args]

    def build_env(self) -> dict[str, str] | None:
        """Environment for the child process, None to inherit ours."""
        if self.config.credential_mode == CredentialMode.ARGUMENTS:
            return None
        return {"PCPPASSFILE": str(self.passfile or "")}

    def run(self, command: str, *args: str) -> str:
        """Execute a PCP command and return its standard output.

        Raises:
            ExecutionFailure: The command could not be started or exited
                with a non-zero status.
            DecodeError: The output is not valid UTF-8.
        """
        exit_code, stdout, stderr = self.execute_command(
            self.build_args(command, *args), self.build_env()
        )
        if exit_code != 0:
            raise ExecutionFailure(command, exit_code, _text(stderr, errors="replace"))
        try:
            return _text(stdout)
        except UnicodeDecodeError as e:
            raise DecodeError(f"{command} printed output that is not UTF-8: {e}") from e

    @abstractmethod
    def execute_command(
        self, argv: list[str], env: dict[str, str] | None
    ) -> tuple[int, str | bytes, str | bytes]:
        """Execute a command.

        Args:
            argv: Program path followed by its arguments.
            env: Child environment, or None to inherit.

        Returns:
            Tuple of (exit_code, stdout, stderr). Output may be text
            or raw bytes.
        """
        ...


def _text(output: str | bytes, errors: str = "strict") -> str:
    if isinstance(output, bytes):
        return output.decode("utf-8", errors=errors)
    return output
