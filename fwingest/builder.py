"""Maps a parsed FieldMap onto a typed FlowRecord."""

import logging
import re
from datetime import datetime

from fwingest.errors import FieldConversionError, MissingFieldError
from fwingest.models import FieldMap, FlowRecord

logger = logging.getLogger(__name__)

INT32_MIN = -(2 ** 31)
INT32_MAX = 2 ** 31 - 1

_DECIMAL_RE = re.compile(r"[+-]?[0-9]+")

# RFC 3339 section 5.6 date-time, ASCII digits only
_RFC3339_RE = re.compile(
    r"(?P<date>[0-9]{4}-[0-9]{2}-[0-9]{2})"
    r"[Tt ]"
    r"(?P<time>[0-9]{2}:[0-9]{2}:[0-9]{2})"
    r"(?:\.(?P<frac>[0-9]+))?"
    r"(?P<offset>[Zz]|[+-][0-9]{2}:[0-9]{2})"
)

# Log key -> FlowRecord attribute
_INT_FIELDS = {
    "ID": "packet_id",
    "LEN": "packet_size",
    "SPT": "src_port",
    "DPT": "dst_port",
}

_TEXT_FIELDS = {
    "IN": "in_interface",
    "OUT": "out_interface",
    "SRC": "src_ip",
    "DST": "dst_ip",
    "PROTO": "protocol",
    "RULE_ID": "rule_id",
    "FLOW_TYPE": "flow_type",
    "FW_ACTION": "fw_action",
}

_REQUIRED = (("SRC", "src_ip"), ("DST", "dst_ip"))


def _parse_int32(key: str, value: str) -> int:
    if not _DECIMAL_RE.fullmatch(value):
        raise FieldConversionError(key, value, "not a decimal integer")
    number = int(value)
    if not INT32_MIN <= number <= INT32_MAX:
        raise FieldConversionError(key, value, "outside signed 32-bit range")
    return number


def _parse_rfc3339(key: str, value: str) -> datetime:
    """Parse an RFC 3339 date-time; the UTC offset is mandatory.

    Fractional seconds beyond microseconds are truncated.
    """
    m = _RFC3339_RE.fullmatch(value)
    if not m:
        raise FieldConversionError(key, value, "not an RFC 3339 date-time")
    frac = (m.group("frac") or "")[:6].ljust(6, "0")
    offset = m.group("offset")
    if offset in ("Z", "z"):
        offset = "+00:00"
    try:
        return datetime.fromisoformat(f"{m.group('date')}T{m.group('time')}.{frac}{offset}")
    except ValueError as e:
        raise FieldConversionError(key, value, str(e)) from e


def build_record(fields: FieldMap) -> FlowRecord:
    """Build a FlowRecord from a FieldMap.

    Unrecognized keys are ignored. Raises FieldConversionError for bad
    numeric or timestamp text and MissingFieldError when SRC or DST is empty.
    """
    values: dict = {
        "src_ip": "",
        "dst_ip": "",
        "flow_type": "",
        "rule_id": "",
        "fw_action": "",
        "in_interface": "",
    }
    for key, value in fields.items():
        if key in _INT_FIELDS:
            values[_INT_FIELDS[key]] = _parse_int32(key, value)
        elif key in _TEXT_FIELDS:
            values[_TEXT_FIELDS[key]] = value
        elif key == "LOGGED_AT":
            values["logged_at"] = _parse_rfc3339(key, value)
        else:
            logger.debug("ignored field: %s", key)

    for key, attr in _REQUIRED:
        if not values[attr]:
            raise MissingFieldError(key)

    return FlowRecord(**values)
