"""JSON repair helpers for streamed or truncated model output."""

from __future__ import annotations

import json
import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_CLOSERS = {"{": "}", "[": "]"}


def repair_truncated_json(text: str) -> str:
    """Close any string, object or array left open at the end of ``text``.

    Only quote/brace/bracket balance is restored. A closer that does not match
    the innermost open container is left in place and ignored. Other defects
    (trailing commas, dangling keys) are not fixed.

    >>> repair_truncated_json('{"a": [1, 2, {"b": "c')
    '{"a": [1, 2, {"b": "c"}]}'
    """
    if not text:
        return ""

    stack: list[str] = []
    in_string = False
    escaped = False

    for char in text:
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue

        if char == '"':
            in_string = True
        elif char in _CLOSERS:
            stack.append(_CLOSERS[char])
        elif char in ("}", "]"):
            if stack and stack[-1] == char:
                stack.pop()

    if not in_string and not stack:
        return text

    suffix = '"' if in_string else ""
    return text + suffix + "".join(reversed(stack))


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences that chat models wrap around JSON."""
    text = re.sub(r"```json\s*", "", text)
    text = re.sub(r"```\s*", "", text)
    return text.strip()


def _find_opener(text: str) -> tuple[int, str]:
    """Return (index, closer) of the first ``{`` or ``[``; index is -1 if none."""
    idx_dict = text.find("{")
    idx_list = text.find("[")

    if idx_dict == -1 and idx_list == -1:
        return -1, ""
    if idx_dict != -1 and (idx_list == -1 or idx_dict < idx_list):
        return idx_dict, "}"
    return idx_list, "]"


def extract_json_block(text: str) -> str:
    """Slice the outermost object or array, whichever opens first.

    When the closing delimiter is missing (truncated output) the slice runs
    to the end of the text so it can still be repaired.
    """
    text = text.strip()
    start, closer = _find_opener(text)
    if start == -1:
        return text

    end = text.rfind(closer)
    if end > start:
        return text[start : end + 1]
    return text[start:]


def loads_lenient(text: str, default: Any = None) -> Any:
    """Parse model output as JSON, repairing what can be repaired.

    Returns ``default`` instead of raising when the text still does not parse.
    """
    if not text:
        return default

    cleaned = strip_code_fences(text)
    block = extract_json_block(cleaned)
    start, _ = _find_opener(cleaned)
    # The tail keeps content past an inner closer when the output was cut off.
    tail = cleaned[start:] if start != -1 else cleaned
    attempts = (block, repair_truncated_json(tail), repair_truncated_json(block))
    for attempt in attempts:
        try:
            return json.loads(attempt)
        except (ValueError, RecursionError):
            continue

    logger.debug("Could not recover JSON from %d chars of output", len(text))
    return default
