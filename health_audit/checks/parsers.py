"""
Named parsers for command output.

Every function states the shape it expects and raises OutputShapeError when
the output does not have it, so a check never reaches past the end of a
printout or reads the wrong column.
"""

import math
import re
from typing import Dict, Iterable, List, Tuple


class OutputShapeError(ValueError):
    """Command output does not have the expected shape."""


def non_empty(lines: Iterable[str]) -> List[str]:
    return [line for line in lines if line.strip()]


def line_at(lines: List[str], index: int, what: str = "line") -> str:
    """Return lines[index], negative indexes count from the end."""
    try:
        return lines[index]
    except IndexError:
        raise OutputShapeError(
            f"expected {what} at position {index}, output has {len(lines)} lines"
        ) from None


def section(lines: List[str], start: int, stop: int, what: str) -> List[str]:
    """Return lines[start:stop], requiring the output to be long enough."""
    if len(lines) < stop:
        raise OutputShapeError(
            f"expected {what} on lines {start}-{stop - 1}, output has {len(lines)} lines"
        )
    return lines[start:stop]


def fields_of(line: str, minimum: int = 1) -> List[str]:
    """Whitespace separated fields of line, at least minimum of them."""
    fields = line.split()
    if len(fields) < minimum:
        raise OutputShapeError(
            f"expected at least {minimum} fields, got {len(fields)}: {line!r}"
        )
    return fields


def field_at(line: str, index: int, what: str = "field") -> str:
    """Return the index-th whitespace separated field of line."""
    fields = line.split()
    try:
        return fields[index]
    except IndexError:
        raise OutputShapeError(
            f"expected {what} in field {index}, got {len(fields)} fields: {line!r}"
        ) from None


def parse_int(text: str, what: str = "number") -> int:
    try:
        return int(text.strip())
    except ValueError:
        raise OutputShapeError(f"expected {what}, got {text!r}") from None


def parse_percent(text: str) -> int:
    """``"91%"`` -> 91."""
    return parse_int(text.strip().rstrip("%"), "percentage")


def parse_percent_path(line: str) -> Tuple[int, str]:
    """Split ``"91%/ossrc/sybdev/oss/sybdata"`` into 91 and the path."""
    usage, sep, path = line.strip().partition("%")
    if not sep:
        raise OutputShapeError(f"expected <percent>%<path>, got {line!r}")
    return parse_int(usage, "percentage"), path


_SIZE = re.compile(r"^(\d+(?:\.\d+)?)([BKMGTP]?)$", re.IGNORECASE)
_SIZE_POWERS = {"": 0, "B": 0, "K": 1, "M": 2, "G": 3, "T": 4, "P": 5}


def parse_size(text: str, unit: str = "G") -> float:
    """Convert a ``du -h`` size such as ``"1.5G"`` or ``"512K"`` to unit."""
    match = _SIZE.match(text.strip())
    if not match:
        raise OutputShapeError(f"expected a size such as 1.5G, got {text!r}")
    value = float(match.group(1))
    power = _SIZE_POWERS[match.group(2).upper()] - _SIZE_POWERS[unit.upper()]
    return value * math.pow(1024, power)


def parse_du_line(line: str) -> Tuple[str, str]:
    """Split a ``du -sh`` line into the size text and the path."""
    parts = line.strip().split(None, 1)
    if len(parts) != 2:
        raise OutputShapeError(f"expected <size> <path>, got {line!r}")
    return parts[0], parts[1]


def value_after_colon(line: str) -> str:
    """``"Owner : jdoe"`` -> ``"jdoe"``."""
    _, sep, value = line.partition(":")
    if not sep:
        raise OutputShapeError(f"expected <key> : <value>, got {line!r}")
    return value.strip()


_UPTIME_DAYS = re.compile(r"\bup\s+(\d+)\s+day")


def uptime_days(line: str) -> int:
    """Days since boot from ``uptime`` output, 0 when up less than a day."""
    if " up " not in f" {line} ":
        raise OutputShapeError(f"expected uptime output, got {line!r}")
    match = _UPTIME_DAYS.search(line)
    return int(match.group(1)) if match else 0


def parse_table(lines: List[str]) -> List[Dict[str, str]]:
    """Rows of a header-led table such as ``zpool list``, keyed by column name."""
    rows = non_empty(lines)
    if not rows:
        raise OutputShapeError("expected a table header, output is empty")
    header = rows[0].split()
    return [dict(zip(header, row.split())) for row in rows[1:]]


def column(row: Dict[str, str], name: str) -> str:
    try:
        return row[name]
    except KeyError:
        raise OutputShapeError(f"expected column {name} in {row}") from None


def parse_svcs_long(lines: List[str]) -> Dict[str, str]:
    """
    Parse ``svcs -l <fmri>`` into a key to value mapping.

    Values are the remaining fields joined by single spaces, e.g.
    ``{"name": "ESM", "enabled": "true", "state": "online",
    "state_time": "Mon Oct 12 10:11:12 2020"}``.
    """
    info: Dict[str, str] = {}
    for line in non_empty(lines):
        fields = line.split()
        info.setdefault(fields[0], " ".join(fields[1:]))
    for key in ("fmri", "enabled", "state"):
        if key not in info:
            raise OutputShapeError(f"svcs -l output has no {key} line")
    return info


def zpool_errors(lines: List[str]) -> List[Tuple[str, str]]:
    """
    Pair each ``pool:`` line of ``zpool status`` with its ``errors:`` line.

    Returns:
        (pool, errors text) tuples in output order
    """
    pairs = []
    rows = non_empty(lines)
    for index, line in enumerate(rows):
        if "pool:" not in line:
            continue
        pool = fields_of(line, 2)[1]
        following = line_at(rows, index + 1, f"errors line of pool {pool}")
        key, sep, errors = following.partition(": ")
        if not sep or "errors" not in key:
            raise OutputShapeError(f"expected errors line after pool {pool}, got {following!r}")
        pairs.append((pool, errors.strip()))
    return pairs


def dotted_result(line: str) -> Tuple[str, str]:
    """``"Checking tempdb........OK!"`` -> ``("Checking tempdb", "OK!")``."""
    parts = line.strip().split(".")
    if len(parts) < 2:
        raise OutputShapeError(f"expected <check>....<result>, got {line!r}")
    return parts[0].strip(), parts[-1].strip()


def is_ipv4(text: str) -> bool:
    parts = text.split(".")
    return len(parts) == 4 and all(p.isdigit() for p in parts)
