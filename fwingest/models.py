"""Flow record dataclass — the typed shape of one logged packet event."""

from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Any

# Field key -> raw text value for one log line. Later keys overwrite earlier ones.
FieldMap = dict[str, str]


@dataclass(frozen=True)
class FlowRecord:
    src_ip: str
    dst_ip: str
    flow_type: str
    rule_id: str
    fw_action: str
    in_interface: str

    src_port: int = 0
    dst_port: int = 0
    packet_id: int = 0
    packet_size: int = 0
    protocol: str = ""
    out_interface: str | None = None
    logged_at: datetime | None = None


def record_to_dict(record: FlowRecord) -> dict[str, Any]:
    """Convert a FlowRecord to a JSON-ready dict with an ISO 8601 timestamp."""
    data = asdict(record)
    if record.logged_at is not None:
        data["logged_at"] = record.logged_at.isoformat()
    return data
