"""
Best-effort parsing of incomplete JSON produced while a model streams.
"""

import json
from typing import Any, Optional


def close_json(text: str) -> str:
    """
    Close any open string, arrays and objects in a JSON prefix.

    Brackets are tracked outside of strings only and closed innermost
    first. The result parses when the prefix was cut between values;
    otherwise parse_partial_json() returns None.
    """
    stack = []
    in_string = False
    escaped = False

    for char in text:
        if escaped:
            escaped = False
            continue
        if char == "\\":
            escaped = True
            continue
        if char == '"':
            in_string = not in_string
            continue
        if in_string:
            continue
        if char in "{[":
            stack.append("}" if char == "{" else "]")
        elif char in "}]" and stack:
            stack.pop()

    closed = text
    if in_string:
        closed += '"'
    closed += "".join(reversed(stack))
    return closed


def parse_partial_json(text: str) -> Optional[Any]:
    """Parse a JSON prefix, or return None if it cannot be closed cleanly."""
    try:
        return json.loads(close_json(text))
    except json.JSONDecodeError:
        return None
