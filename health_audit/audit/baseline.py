"""
Single-checkpoint baseline used for drift detection.

One file per host, ``<directory>/<host>.srvs``, with one line per resource::

    <resource-name> <marker-text>

The marker is everything after the first run of whitespace, up to the end
of the line. It is kept verbatim, trailing whitespace included, and only ever
compared for equality. Leading whitespace cannot survive the separator, so it
is dropped on both write and compare. Each run replaces the whole
file, so only the immediately preceding run is remembered.
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Mapping, Optional, Tuple, Union

from ..core.logging_config import get_logger

logger = get_logger(__name__)

BASELINE_SUFFIX = ".srvs"

_SEPARATOR = re.compile(r"\s+")


class BaselineError(OSError):
    """Raised when the baseline file cannot be read or written."""


@dataclass(frozen=True)
class BaselineComparison:
    """A freshly observed marker against the one persisted by the last run."""

    resource: str
    previous: Optional[str]
    current: str

    @property
    def drifted(self) -> bool:
        return self.previous != self.current


def normalize_marker(marker: str) -> str:
    """The marker as it reads back: leading whitespace belongs to the separator."""
    return marker.lstrip()


def parse_baseline_line(line: str) -> Optional[Tuple[str, str]]:
    """Split a baseline line into resource and marker, None for blank lines."""
    line = line.rstrip("\r\n").lstrip()
    if not line.strip():
        return None
    parts = _SEPARATOR.split(line, maxsplit=1)
    return parts[0], parts[1] if len(parts) > 1 else ""


def format_baseline_line(resource: str, marker: str) -> str:
    """
    Format one entry so that parse_baseline_line() returns it unchanged.

    Raises:
        BaselineError: resource or marker would not fit on one line
    """
    if not resource or _SEPARATOR.search(resource):
        raise BaselineError(f"invalid baseline resource name {resource!r}")
    if "\n" in marker or "\r" in marker:
        raise BaselineError(f"baseline marker of {resource} spans several lines")
    return f"{resource} {normalize_marker(marker)}"


class BaselineStore:
    """Persisted resource to marker mapping of one host."""

    def __init__(self, directory: Union[str, Path], host: str):
        self.host = host
        self.path = Path(directory) / f"{host}{BASELINE_SUFFIX}"
        self.entries: Dict[str, str] = {}

    def load(self) -> Dict[str, str]:
        """
        Read the persisted entries.

        A missing file is the first run: the baseline is empty and every
        comparison of this run mismatches.
        """
        self.entries = {}
        if not self.path.exists():
            logger.info("No baseline for %s yet at %s", self.host, self.path)
            return {}

        try:
            text = self.path.read_text()
        except OSError as e:
            raise BaselineError(f"cannot read baseline {self.path}: {e}") from e

        for line in text.split("\n"):
            parsed = parse_baseline_line(line)
            if parsed is not None:
                resource, marker = parsed
                self.entries[resource] = marker

        logger.debug("Loaded %s baseline entries for %s", len(self.entries), self.host)
        return dict(self.entries)

    def compare_one(self, resource: str, marker: str) -> BaselineComparison:
        return BaselineComparison(
            resource, self.entries.get(resource), normalize_marker(marker)
        )

    def compare(self, fresh: Mapping[str, str]) -> List[BaselineComparison]:
        return [self.compare_one(resource, marker) for resource, marker in fresh.items()]

    def replace(self, fresh: Mapping[str, str]) -> None:
        """Rewrite the file with exactly the fresh markers."""
        content = "".join(
            format_baseline_line(resource, marker) + "\n"
            for resource, marker in fresh.items()
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(content)
        except OSError as e:
            raise BaselineError(f"cannot write baseline {self.path}: {e}") from e

        self.entries = {
            resource: normalize_marker(marker) for resource, marker in fresh.items()
        }
        logger.debug("Wrote %s baseline entries for %s", len(fresh), self.host)

    def compare_and_replace(self, fresh: Mapping[str, str]) -> List[BaselineComparison]:
        """Compare fresh markers with the loaded ones, then persist them."""
        comparisons = self.compare(fresh)
        self.replace(fresh)
        return comparisons
