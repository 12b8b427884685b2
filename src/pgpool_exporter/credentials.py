"""PCP password file handling."""

import logging
import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from pgpool_exporter.config import PASSFILE_MODE, CredentialMode, PCPConfig, validate_passfile

logger = logging.getLogger(__name__)


def format_passfile_entry(pcp: PCPConfig) -> str:
    """Render the ``hostname:port:username:password`` line PCP expects."""
    return f"{pcp.hostname}:{pcp.port}:{pcp.username}:{pcp.password}"


def write_passfile(pcp: PCPConfig, directory: str | None = None) -> Path:
    """Write a temporary password file readable only by the owner."""
    fd, name = tempfile.mkstemp(prefix="pgpool2", dir=directory)
    try:
        with os.fdopen(fd, "w") as f:
            os.fchmod(f.fileno(), PASSFILE_MODE)
            f.write(format_passfile_entry(pcp))
    except BaseException:
        os.unlink(name)
        raise
    return Path(name)


@contextmanager
def pcp_passfile(pcp: PCPConfig, directory: str | None = None) -> Iterator[Path | None]:
    """Yield the password file the PCP commands should read.

    A user supplied passfile is validated and used as is. Otherwise a
    temporary one is written from the configured password and removed when
    the block exits, whatever the reason. Positional credentials need no
    file and yield None.
    """
    if pcp.credential_mode == CredentialMode.ARGUMENTS:
        yield None
        return

    if pcp.passfile:
        yield validate_passfile(pcp.passfile)
        return

    path = write_passfile(pcp, directory)
    logger.debug(f"Created temporary pcppass file {path}")
    try:
        yield path
    finally:
        try:
            path.unlink()
            logger.debug(f"Removed temporary pcppass file {path}")
        except FileNotFoundError:
            pass
