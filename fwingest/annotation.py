"""Rule annotation extractor.

A netfilter LOG rule prefixes each packet line with a bracketed tag followed
directly by the inbound interface, for example::

    [LAN_IN-4001-A]IN=eth1

The bracket body is ``FLOW_TYPE-RULE_ID-ACTION``. Anything after a third
``-`` is ignored, so a flow type or rule id that itself contains ``-`` is
truncated.
"""

from fwingest.errors import MalformedLineError


def extract_annotation(token: str) -> tuple[str, str, str, str]:
    """Split an annotation token into (flow_type, rule_id, fw_action, in_interface).

    Raises MalformedLineError if any expected part is missing.
    """
    bracket = token.split("]", 1)
    if len(bracket) < 2:
        raise MalformedLineError(f"malformed annotation {token!r}: no closing bracket")
    body, suffix = bracket

    inner = body.split("-")
    if len(inner) < 3 or not inner[0]:
        raise MalformedLineError(f"malformed annotation {token!r}: expected FLOW-RULE-ACTION")
    # The first character is the opening bracket; it is dropped, not checked.
    flow_type = inner[0][1:]
    rule_id = inner[1]
    fw_action = inner[2]

    iface = suffix.split("=")
    if len(iface) < 2:
        raise MalformedLineError(f"malformed annotation {token!r}: no interface after bracket")

    return flow_type, rule_id, fw_action, iface[1]
