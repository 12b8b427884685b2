"""Exceptions for pgpool exporter."""


class PgpoolExporterError(Exception):
    """Base exception for pgpool exporter errors."""

    pass


class ConfigError(PgpoolExporterError):
    """Invalid startup configuration (missing credentials, bad passfile)."""

    pass


class ExecutionFailure(PgpoolExporterError):
    """A PCP command could not be spawned or exited non-zero."""

    command: str
    returncode: int | None
    stderr: str

    def __init__(
        self,
        command: str,
        returncode: int | None = None,
        stderr: str = "",
        cause: Exception | None = None,
    ) -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr.strip()
        if cause is not None:
            message = f"failed to execute {command}: {cause}"
        else:
            message = f"{command} exited with status {returncode}"
            if self.stderr:
                message = f"{message}: {self.stderr}"
        super().__init__(message)


class DecodeError(PgpoolExporterError):
    """PCP command output could not be read or decoded."""

    pass
