"""PCP command runner using local subprocesses."""

import logging
import subprocess

from pgpool_exporter.errors import ExecutionFailure
from pgpool_exporter.pcp.base import BaseCommandRunner

logger = logging.getLogger(__name__)


class SubprocessRunner(BaseCommandRunner):
    """Spawn PCP executables on the local host."""

    def execute_command(
        self, argv: list[str], env: dict[str, str] | None
    ) -> tuple[int, bytes, bytes]:
        """Execute a local command and wait for it to finish.

        Output is returned undecoded; ``run`` decodes it.
        """
        logger.debug(f"Executing {argv[0]}")
        try:
            result = subprocess.run(argv, env=env, capture_output=True)
        except OSError as e:
            raise ExecutionFailure(argv[0], cause=e) from e

        if result.returncode != 0:
            logger.debug(f"{argv[0]} exited with status {result.returncode}")
        return result.returncode, result.stdout, result.stderr
