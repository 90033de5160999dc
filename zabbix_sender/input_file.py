"""Input-file parsing for the command line sender.

Each non-blank line holds one metric::

    <host> <key> <value>
    <host> <key> <clock> <value>     (with timestamps)

The value is the rest of the line and may contain spaces. Any field may be
wrapped in double quotes. A host of ``-`` stands for the default host given
on the command line.
"""

import re
from typing import Generator, Iterable, Optional

from zabbix_sender.models import Metric, create_metric

# one leading field: a double-quoted string or a run of non-blank characters
_FIELD_RE = re.compile(r'\s*(?:"([^"]*)"|(\S+))')


def _unquote(field: str) -> str:
    if len(field) >= 2 and field[0] == field[-1] == '"':
        return field[1:-1]
    return field


def _split_fields(line: str, count: int) -> list[str]:
    """Split *line* into at most *count* fields, the last being the remainder."""
    fields = []
    pos = 0
    for _ in range(count - 1):
        match = _FIELD_RE.match(line, pos)
        if not match:
            break
        quoted, bare = match.groups()
        fields.append(quoted if quoted is not None else bare)
        pos = match.end()
    rest = line[pos:].strip()
    if rest:
        fields.append(_unquote(rest))
    return fields


def parse_input_line(
    line: str,
    with_timestamps: bool = False,
    default_host: Optional[str] = None,
) -> Metric:
    """Parse one input line into a Metric.

    Raises:
        ValueError: If the line has too few fields, the clock is not an
            integer, or the host is ``-`` with no default host.
    """
    expected = 4 if with_timestamps else 3
    parts = _split_fields(line.strip(), expected)
    if len(parts) != expected:
        raise ValueError(f"expected {expected} fields, got {len(parts)}")

    host, key = parts[0], parts[1]
    if host == "-":
        if not default_host:
            raise ValueError("host '-' used but no default host given")
        host = default_host

    clock = None
    if with_timestamps:
        try:
            clock = int(parts[2])
        except ValueError:
            raise ValueError(f"invalid timestamp {parts[2]!r}") from None

    return create_metric(host, key, parts[-1], clock)


def read_input(
    lines: Iterable[str],
    with_timestamps: bool = False,
    default_host: Optional[str] = None,
) -> Generator[Metric, None, None]:
    """Yield a Metric for every non-blank line, tagging errors with the line number."""
    for lineno, line in enumerate(lines, start=1):
        if not line.strip():
            continue
        try:
            yield parse_input_line(line, with_timestamps, default_host)
        except ValueError as e:
            raise ValueError(f"line {lineno}: {e}") from e
