"""File ingestion — per-line isolation between the parser and a sink."""

import json
import logging
import os
import tempfile
from dataclasses import dataclass, field, asdict
from typing import Iterable

from fwingest.builder import build_record
from fwingest.errors import LineError
from fwingest.models import FlowRecord
from fwingest.parser import parse_line

logger = logging.getLogger(__name__)


@dataclass
class IngestStats:
    total_lines: int = 0
    blank_lines: int = 0
    parsed: int = 0
    skipped: int = 0
    inserted: int = 0
    rejected: int = 0
    skip_reasons: dict[str, int] = field(default_factory=dict)

    def record_skip(self, reason: str) -> None:
        self.skipped += 1
        self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + 1

    def merge(self, other: "IngestStats") -> None:
        """Add another run's counters into this one."""
        self.total_lines += other.total_lines
        self.blank_lines += other.blank_lines
        self.parsed += other.parsed
        self.skipped += other.skipped
        self.inserted += other.inserted
        self.rejected += other.rejected
        for reason, count in other.skip_reasons.items():
            self.skip_reasons[reason] = self.skip_reasons.get(reason, 0) + count

    def to_dict(self) -> dict:
        return asdict(self)

    def save(self, path: str) -> None:
        """Write the counters to *path* as JSON, atomically."""
        directory = os.path.dirname(os.path.abspath(path))
        os.makedirs(directory, exist_ok=True)
        tmp_fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, indent=2)
                f.write("\n")
            os.replace(tmp_path, path)
        except Exception:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise


def process_line(line: str) -> FlowRecord:
    """Parse and convert one raw line. Raises a LineError subclass on failure."""
    return build_record(parse_line(line))


def ingest_lines(lines: Iterable[str], sink, stats: IngestStats | None = None) -> IngestStats:
    """Feed each line through the parser into *sink*, in order.

    A line that fails to parse or convert is logged and counted, never fatal.
    Exceptions raised by the sink itself propagate.
    """
    if stats is None:
        stats = IngestStats()

    for lineno, line in enumerate(lines, start=1):
        stats.total_lines += 1
        if not line.strip():
            stats.blank_lines += 1
            logger.debug("line %d: blank, skipped", lineno)
            continue

        try:
            record = process_line(line)
        except LineError as e:
            logger.warning("line %d skipped (%s): %s", lineno, e.reason, e)
            stats.record_skip(e.reason)
            continue

        stats.parsed += 1
        if sink.insert(record):
            stats.inserted += 1
        else:
            stats.rejected += 1

    return stats


def read_lines(path: str) -> list[str]:
    """Read a whole log file and split it on line boundaries."""
    with open(path, "r", encoding="utf-8") as f:
        return f.read().splitlines()


def ingest_file(path: str, sink, stats: IngestStats | None = None) -> IngestStats:
    """Ingest every line of *path*, adding to *stats* when given.

    Read errors propagate to the caller.
    """
    if stats is None:
        stats = IngestStats()
    inserted, rejected, skipped = stats.inserted, stats.rejected, stats.skipped

    logger.info("Ingesting: %s", path)
    ingest_lines(read_lines(path), sink, stats)
    logger.info(
        "  -> %s: %d inserted, %d rejected, %d skipped",
        path,
        stats.inserted - inserted,
        stats.rejected - rejected,
        stats.skipped - skipped,
    )
    return stats
