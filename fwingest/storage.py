"""Flow record sinks — a SQL table with a uniqueness constraint, and JSON lines.

A sink is anything with ``insert(record) -> bool``. ``True`` means the record
was stored; ``False`` means the sink refused it and ingestion should carry on.
"""

import json
import logging
from datetime import timezone
from typing import TextIO

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    Column,
    DateTime,
    Integer,
    MetaData,
    String,
    Table,
    UniqueConstraint,
    create_engine,
    func,
    select,
)
from sqlalchemy.exc import DataError, IntegrityError

from fwingest.models import FlowRecord, record_to_dict

logger = logging.getLogger(__name__)

metadata = MetaData()

# The UNIQUE key turns a re-ingested line into a rejected insert.
flow_entries = Table(
    "flow_entries",
    metadata,
    Column("id", BigInteger().with_variant(Integer, "sqlite"), primary_key=True, autoincrement=True),
    Column("src_port", Integer),
    Column("dst_port", Integer),
    Column("packet_id", Integer),
    Column("packet_size", Integer),
    Column("src_ip", String(45), nullable=False),
    Column("dst_ip", String(45), nullable=False),
    Column("in_interface", String(16), nullable=False),
    Column("out_interface", String(16)),
    Column("protocol", String(16), nullable=False),
    Column("flow_type", String(16), nullable=False),
    Column("rule_id", String(32), nullable=False),
    Column("fw_action", String(16), nullable=False),
    Column("logged_at", DateTime(timezone=True), nullable=False),
    CheckConstraint("src_ip <> ''", name="ck_flow_entries_src_ip"),
    CheckConstraint("dst_ip <> ''", name="ck_flow_entries_dst_ip"),
    UniqueConstraint(
        "src_ip", "protocol", "packet_id", "packet_size", "logged_at",
        name="uq_flow_entries_packet",
    ),
)


def _record_to_row(record: FlowRecord) -> dict:
    row = {
        "src_ip": record.src_ip,
        "src_port": record.src_port,
        "dst_ip": record.dst_ip,
        "dst_port": record.dst_port,
        "packet_id": record.packet_id,
        "packet_size": record.packet_size,
        "protocol": record.protocol,
        "flow_type": record.flow_type,
        "rule_id": record.rule_id,
        "fw_action": record.fw_action,
        "in_interface": record.in_interface,
        "out_interface": record.out_interface,
        "logged_at": None,
    }
    # Stored as UTC; SQLite keeps no offset of its own.
    if record.logged_at is not None:
        row["logged_at"] = record.logged_at.astimezone(timezone.utc)
    return row


class FlowStore:
    """SQLAlchemy-backed sink writing one row per flow record."""

    def __init__(self, url: str, echo: bool = False):
        self._engine = create_engine(url, echo=echo)

    @property
    def engine(self):
        return self._engine

    def init_schema(self) -> None:
        """Create the flow_entries table if it does not exist yet."""
        metadata.create_all(self._engine)

    def insert(self, record: FlowRecord) -> bool:
        """Insert one record in its own transaction.

        Returns False, after logging a warning, when the database rejects the
        row, e.g. a duplicate packet or a value too long for its column.
        """
        try:
            with self._engine.begin() as conn:
                conn.execute(flow_entries.insert().values(**_record_to_row(record)))
        except (IntegrityError, DataError) as e:
            logger.warning(
                "insert rejected for %s -> %s id=%d: %s",
                record.src_ip, record.dst_ip, record.packet_id, e.orig,
            )
            return False
        return True

    def count(self) -> int:
        with self._engine.connect() as conn:
            return conn.execute(select(func.count()).select_from(flow_entries)).scalar_one()

    def fetch_all(self) -> list[dict]:
        """Return every stored row as a dict, in insertion order."""
        with self._engine.connect() as conn:
            result = conn.execute(select(flow_entries).order_by(flow_entries.c.id))
            return [dict(row._mapping) for row in result]

    def close(self) -> None:
        self._engine.dispose()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


class JsonLinesSink:
    """Writes each record as one JSON object per line. Never refuses a record."""

    def __init__(self, stream: TextIO):
        self._stream = stream

    def insert(self, record: FlowRecord) -> bool:
        self._stream.write(json.dumps(record_to_dict(record)) + "\n")
        return True
