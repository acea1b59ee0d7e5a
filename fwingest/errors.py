"""Per-line failure outcomes.

Every reason a single log line can be skipped is a ``LineError``. The
ingestion loop catches the base class, logs it, and moves on to the next
line, so none of these ever abort a run.
"""

from __future__ import annotations


class LineError(Exception):
    """Raised when one log line cannot be turned into a flow record."""

    reason = "line_error"


class MalformedLineError(LineError):
    """Raised when a line has too few tokens or a bad rule annotation."""

    reason = "malformed"


class FieldConversionError(LineError):
    """Raised when a recognized field holds text that cannot be converted."""

    reason = "conversion"

    def __init__(self, key: str, value: str, detail: str):
        super().__init__(f"cannot convert {key}={value!r}: {detail}")
        self.key = key
        self.value = value


class MissingFieldError(LineError):
    """Raised when a required field is absent or empty."""

    reason = "missing_field"

    def __init__(self, key: str):
        super().__init__(f"required field {key} is missing or empty")
        self.key = key
