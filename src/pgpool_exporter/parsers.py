"""Decoders for the text reports printed by the PCP commands.

Every PCP command prints one ``<label>: <value>`` pair per line. A line is
classified by checking the field labels below, in order, for case-sensitive
substring containment; the first label found in the line decides which field
the value is written to. Because of this, a label that contains another label
(``Last Status Change`` contains ``Status``, ``Alive Remote Nodes`` contains
``Remote Nodes``) must come first in its table.

When a value cannot be converted the field keeps its default and decoding
moves on to the next line.
"""

import logging
import re
from enum import Enum
from typing import Any, Callable, Iterable, Iterator, NamedTuple

from pgpool_exporter.errors import DecodeError
from pgpool_exporter.models import NodeInfo, ProcInfo, ProcInfoSummary, WatchdogInfo

logger = logging.getLogger(__name__)

VALUE_PATTERN = re.compile(r"^[^:]+: (.*)$")
CONNECTION_PATTERN = re.compile(r"^(\w+).*([0-1])$")

PROC_INFO_COLUMNS = 13


class ProcFormat(str, Enum):
    """Line layouts of pcp_proc_info output."""

    COLUMNS = "columns"  # pgpool >= 4.0, 13 space separated tokens
    PATTERN = "pattern"  # pgpool 3.x, leading database name, trailing flag


class FieldRule(NamedTuple):
    """A label to look for in a line and how to store its value."""

    label: str
    apply: Callable[[Any, str], None]


def _store(attribute: str, convert: Callable[[str], Any] = str) -> Callable[[Any, str], None]:
    def apply(record: Any, value: str) -> None:
        setattr(record, attribute, convert(value))

    return apply


def _yes(value: str) -> bool:
    return value == "YES"


NODE_INFO_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("Hostname", _store("hostname")),
    FieldRule("Port", _store("port", int)),
    # must stay ahead of "Status"
    FieldRule("Last Status Change", _store("last_status_change")),
    FieldRule("Status", lambda node, value: node.set_status_code(int(value))),
    FieldRule("Weight", _store("weight", float)),
    FieldRule("Role", _store("role")),
    FieldRule("Replication Delay", _store("replication_delay", float)),
    FieldRule("Replication Sync State", _store("replication_sync_state")),
    FieldRule("Replication State", _store("replication_state")),
)

WATCHDOG_INFO_FIELDS: tuple[FieldRule, ...] = (
    FieldRule("Total Nodes", _store("total_nodes", int)),
    # must stay ahead of "Remote Nodes"
    FieldRule("Alive Remote Nodes", _store("alive_remote_nodes", int)),
    FieldRule("Remote Nodes", _store("remote_nodes", int)),
    FieldRule("Quorum state", lambda info, value: info.set_quorum_state(value)),
    FieldRule("VIP up on local node", _store("vip", _yes)),
)


def extract_value(line: str) -> str:
    """Return the value after the first ``": "`` of a line, or ``""``.

    >>> extract_value("Hostname : db-primary-1")
    'db-primary-1'
    """
    match = VALUE_PATTERN.match(line.strip())
    if match is None:
        return ""
    return match.group(1).strip()


def classify(line: str, fields: Iterable[FieldRule]) -> FieldRule | None:
    """Find the first rule whose label occurs in the line."""
    for rule in fields:
        if rule.label in line:
            return rule
    return None


def _lines(stream: Iterable[str]) -> Iterator[str]:
    try:
        for line in stream:
            yield line.strip()
    except (OSError, UnicodeDecodeError) as e:
        raise DecodeError(f"failed to read command output: {e}") from e


def _decode_fields(record: Any, stream: Iterable[str], fields: Iterable[FieldRule]) -> Any:
    fields = tuple(fields)
    for line in _lines(stream):
        rule = classify(line, fields)
        if rule is None:
            continue
        value = extract_value(line)
        try:
            rule.apply(record, value)
        except ValueError:
            logger.debug(f"Ignoring unparsable value {value!r} for field {rule.label!r}")
    return record


def decode_node_info(
    stream: Iterable[str],
    fields: Iterable[FieldRule] = NODE_INFO_FIELDS,
) -> NodeInfo:
    """Decode verbose ``pcp_node_info`` output into a NodeInfo."""
    return _decode_fields(NodeInfo(), stream, fields)


def decode_watchdog_info(
    stream: Iterable[str],
    fields: Iterable[FieldRule] = WATCHDOG_INFO_FIELDS,
) -> WatchdogInfo:
    """Decode verbose ``pcp_watchdog_info`` output into a WatchdogInfo."""
    return _decode_fields(WatchdogInfo(), stream, fields)


def _proc_from_columns(line: str) -> ProcInfo | None:
    columns = line.split(" ")
    if len(columns) != PROC_INFO_COLUMNS:
        return None
    return ProcInfo(
        database=columns[0],
        username=columns[1],
        connected=columns[12] == "1",
    )


def _proc_from_pattern(line: str) -> ProcInfo | None:
    match = CONNECTION_PATTERN.match(line)
    if match is None:
        return None
    return ProcInfo(database=match.group(1), connected=match.group(2) == "1")


_PROC_DECODERS = {
    ProcFormat.COLUMNS: _proc_from_columns,
    ProcFormat.PATTERN: _proc_from_pattern,
}


def decode_proc_info(
    stream: Iterable[str],
    fmt: ProcFormat = ProcFormat.COLUMNS,
) -> list[ProcInfo]:
    """Decode ``pcp_proc_info`` output, one ProcInfo per matching line.

    Lines that do not fit the chosen layout are skipped.
    """
    decode_line = _PROC_DECODERS[ProcFormat(fmt)]
    procs = []
    for line in _lines(stream):
        proc = decode_line(line)
        if proc is not None:
            procs.append(proc)
    return procs


def decode_count(output: str) -> int:
    """Decode the single number printed by pcp_node_count.

    Empty output counts as zero.
    """
    text = output.strip()
    if not text:
        return 0
    try:
        return int(text)
    except ValueError as e:
        raise DecodeError(f"unexpected count output: {text!r}") from e


def decode_proc_count(output: str) -> list[str]:
    """Split pcp_proc_count output into child process ids.

    The number of tokens is the process count; empty output means none.
    """
    text = output.strip()
    if not text:
        return []
    return text.split(" ")


def summarize_procs(procs: Iterable[ProcInfo]) -> ProcInfoSummary:
    """Fold process records into per-database active/inactive counters."""
    summary = ProcInfoSummary()
    for proc in procs:
        summary.add(proc.database, proc.connected)
    return summary
