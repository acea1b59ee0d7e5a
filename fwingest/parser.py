"""Netfilter log line parser — positional tokens folded into a field map.

Expected layout, split on single spaces::

    <timestamp> <host> <process:> [<FLOW>-<RULE>-<ACTION>]IN=<if> KEY=VALUE ...

Token 0 is kept as LOGGED_AT, tokens 1-2 are skipped, token 3 must be a rule
annotation, and every later token is read as KEY=VALUE.
"""

import logging

from fwingest.annotation import extract_annotation
from fwingest.errors import MalformedLineError
from fwingest.models import FieldMap

logger = logging.getLogger(__name__)

ANNOTATION_INDEX = 3


def parse_line(line: str) -> FieldMap:
    """Parse one raw log line into a FieldMap.

    Raises MalformedLineError when the line has fewer than four tokens or its
    annotation token is malformed. Tokens after the annotation that lack
    ``=`` are dropped without failing the line.
    """
    # No collapsing: consecutive spaces produce empty tokens.
    tokens = line.split(" ")
    if len(tokens) <= ANNOTATION_INDEX:
        raise MalformedLineError(
            f"expected at least {ANNOTATION_INDEX + 1} tokens, got {len(tokens)}"
        )

    fields: FieldMap = {"LOGGED_AT": tokens[0]}

    flow_type, rule_id, fw_action, in_interface = extract_annotation(tokens[ANNOTATION_INDEX])
    fields["FW_ACTION"] = fw_action
    fields["RULE_ID"] = rule_id
    fields["FLOW_TYPE"] = flow_type
    fields["IN"] = in_interface

    for token in tokens[ANNOTATION_INDEX + 1:]:
        key, sep, value = token.partition("=")
        if not sep:
            logger.debug("ignored token: %r", token)
            continue
        fields[key] = value

    logger.debug("fields %s", fields)
    return fields
