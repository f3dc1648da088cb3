"""Best-effort recovery of a JSON value embedded in free-form model output."""

import json
from collections.abc import Iterator
from typing import Any

_CLOSERS = {"{": "}", "[": "]"}


def _balanced_spans(text: str) -> Iterator[str]:
    """Yield each balanced ``{...}`` / ``[...]`` span, by position of its opener.

    Brackets inside JSON string literals are ignored. A span whose closing
    delimiter never appears is skipped.
    """
    for start, char in enumerate(text):
        if char not in _CLOSERS:
            continue
        stack = [_CLOSERS[char]]
        in_string = False
        escaped = False
        for index in range(start + 1, len(text)):
            current = text[index]
            if in_string:
                if escaped:
                    escaped = False
                elif current == "\\":
                    escaped = True
                elif current == '"':
                    in_string = False
                continue
            if current == '"':
                in_string = True
            elif current in _CLOSERS:
                stack.append(_CLOSERS[current])
            elif current in "}]":
                if current != stack.pop():
                    break
                if not stack:
                    yield text[start:index + 1]
                    break


def iter_json(text: str | None) -> Iterator[Any]:
    """Yield every JSON object or array found in ``text``, in order.

    The whole text is tried first, then every balanced delimiter span from
    left to right. Each candidate goes through ``json.loads``; nothing is
    ever evaluated. Spans that fail to parse are skipped.
    """
    if not text or not text.strip():
        return

    try:
        value = json.loads(text)
    except ValueError:
        pass
    else:
        if isinstance(value, (dict, list)):
            yield value
            return

    for span in _balanced_spans(text):
        try:
            yield json.loads(span)
        except ValueError:
            continue


def extract_json(text: str | None) -> Any | None:
    """Return the first JSON object or array found in ``text``, or ``None``."""
    return next(iter_json(text), None)
