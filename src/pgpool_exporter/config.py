"""Configuration management for pgpool exporter."""

import os
import stat
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any

import yaml

from pgpool_exporter.errors import ConfigError
from pgpool_exporter.parsers import ProcFormat

PASSFILE_MODE = 0o600
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CredentialMode(str, Enum):
    """How credentials are handed to the PCP commands."""

    PASSFILE = "passfile"  # --no-password with PCPPASSFILE in the environment
    ARGUMENTS = "arguments"  # legacy positional host/port/user/password


class FailurePolicy(str, Enum):
    """What a failed command does to the rest of a scrape."""

    BEST_EFFORT = "best_effort"
    FAIL_FAST = "fail_fast"


def validate_passfile(path: str | Path) -> Path:
    """Check a PCP password file exists, is a file and has mode 0600."""
    path = Path(path)
    try:
        info = path.stat()
    except FileNotFoundError:
        raise ConfigError(f"pcppass {path} does not exist") from None
    except OSError as e:
        raise ConfigError(f"cannot retrieve file mode of {path}: {e}") from e

    if not stat.S_ISREG(info.st_mode):
        raise ConfigError(f"pcppass {path} must be a file")

    mode = stat.S_IMODE(info.st_mode)
    if mode != PASSFILE_MODE:
        raise ConfigError(f"unexpected file mode for '{path}': {stat.filemode(info.st_mode)}")
    return path


@dataclass
class PCPConfig:
    """Connection settings for the PCP commands."""

    hostname: str = "127.0.0.1"
    port: int = 9898
    username: str = "pcpadmin"
    password: str | None = None
    passfile: str | None = None
    credential_mode: CredentialMode = CredentialMode.PASSFILE
    timeout: int = 10  # only passed to legacy positional commands
    proc_format: ProcFormat = ProcFormat.COLUMNS
    watchdog: bool = True
    bin_dir: str = "/usr/sbin"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PCPConfig":
        try:
            return cls(
                hostname=data.get("hostname", "127.0.0.1"),
                port=int(data.get("port", 9898)),
                username=data.get("username", "pcpadmin"),
                password=data.get("password"),
                passfile=data.get("passfile"),
                credential_mode=CredentialMode(data.get("credential_mode", "passfile")),
                timeout=int(data.get("timeout", 10)),
                proc_format=ProcFormat(data.get("proc_format", "columns")),
                watchdog=data.get("watchdog", True),
                bin_dir=data.get("bin_dir", "/usr/sbin"),
            )
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid pcp configuration: {e}") from e

    def command_path(self, name: str) -> str:
        """Full path of a PCP executable such as ``pcp_node_count``."""
        return os.path.join(self.bin_dir, name)

    def validate(self) -> None:
        """Raise ConfigError when the exporter must not start."""
        if not self.hostname:
            raise ConfigError("PCP hostname must be specified")
        if not self.username:
            raise ConfigError("PCP username must be specified")
        if self.port <= 0:
            raise ConfigError("PCP port must be greater than zero")

        if self.credential_mode == CredentialMode.ARGUMENTS:
            if not self.password:
                raise ConfigError("PCP password must be specified")
            return

        if self.passfile:
            validate_passfile(self.passfile)
        elif not self.password:
            raise ConfigError("PCP password (or pcppass file) must be specified")


@dataclass
class WebConfig:
    """HTTP listener configuration."""

    host: str = "0.0.0.0"
    port: int = 9288
    telemetry_path: str = "/metrics"

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "WebConfig":
        try:
            port = int(data.get("port", 9288))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"invalid web port: {data.get('port')!r}") from e
        return cls(
            host=data.get("host", "0.0.0.0"),
            port=port,
            telemetry_path=data.get("telemetry_path", "/metrics"),
        )

    @property
    def listen_address(self) -> str:
        return f"{self.host}:{self.port}"

    def set_listen_address(self, address: str) -> None:
        """Apply a ``host:port`` or ``:port`` listen address."""
        host, sep, port = address.rpartition(":")
        if not sep or not port.isdigit():
            raise ConfigError(f"invalid listen address: {address!r}")
        self.host = host or "0.0.0.0"
        self.port = int(port)


@dataclass
class Config:
    """Main configuration for pgpool exporter."""

    pcp: PCPConfig = field(default_factory=PCPConfig)
    web: WebConfig = field(default_factory=WebConfig)
    failure_policy: FailurePolicy = FailurePolicy.BEST_EFFORT
    log_level: str = "INFO"

    @classmethod
    def from_yaml(cls, path: str | Path) -> "Config":
        """Load configuration from YAML file."""
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path) as f:
            data = yaml.safe_load(f) or {}

        if not isinstance(data, dict):
            raise ConfigError(f"{path} must contain a mapping")
        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Config":
        """Create configuration from dictionary."""
        try:
            policy = FailurePolicy(data.get("failure_policy", "best_effort"))
        except ValueError as e:
            raise ConfigError(f"invalid failure policy: {e}") from e

        log_level = str(data.get("log_level") or "INFO").upper()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"invalid log level: {data.get('log_level')!r}")

        return cls(
            pcp=PCPConfig.from_dict(_section(data, "pcp")),
            web=WebConfig.from_dict(_section(data, "web")),
            failure_policy=policy,
            log_level=log_level,
        )

    def validate(self) -> None:
        self.pcp.validate()
        if not self.web.telemetry_path.startswith("/"):
            raise ConfigError("telemetry path must start with '/'")
        if self.web.telemetry_path == "/":
            raise ConfigError("telemetry path must not be '/'")

    def to_yaml(self, path: str | Path) -> None:
        """Save configuration to YAML file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = self._to_dict()
        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def _to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        pcp: dict[str, Any] = {
            "hostname": self.pcp.hostname,
            "port": self.pcp.port,
            "username": self.pcp.username,
            "credential_mode": self.pcp.credential_mode.value,
            "proc_format": self.pcp.proc_format.value,
            "watchdog": self.pcp.watchdog,
            "bin_dir": self.pcp.bin_dir,
        }
        if self.pcp.passfile:
            pcp["passfile"] = self.pcp.passfile
        if self.pcp.password:
            pcp["password"] = self.pcp.password
        if self.pcp.credential_mode == CredentialMode.ARGUMENTS:
            pcp["timeout"] = self.pcp.timeout

        return {
            "pcp": pcp,
            "web": {
                "host": self.web.host,
                "port": self.web.port,
                "telemetry_path": self.web.telemetry_path,
            },
            "failure_policy": self.failure_policy.value,
            "log_level": self.log_level,
        }


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    """Return a nested mapping; a key left empty in YAML means defaults."""
    section = data.get(name) or {}
    if not isinstance(section, dict):
        raise ConfigError(f"'{name}' must be a mapping, got {type(section).__name__}")
    return section

def create_example_config() -> Config:
    """Create an example configuration for documentation."""
    return Config(
        pcp=PCPConfig(
            hostname="127.0.0.1",
            port=9898,
            username="pcpadmin",
            passfile="/etc/pgpool-II/pcp.pass",
        ),
        web=WebConfig(host="0.0.0.0", port=9288, telemetry_path="/metrics"),
    )
