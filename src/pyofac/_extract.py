"""Tolerant extraction of small numeric fields from a document prefix.

The staleness probe only downloads the head of the SDN document, which is
never well-formed markup on its own. Instead of handing it to an XML parser
we scan the prefix for one element and read its text.
"""

from __future__ import annotations

import functools
import re

from pyofac.exceptions import ExtractionError

_NAME_PREFIX = r"(?:[A-Za-z_][\w.-]*:)?"
_MAX_DIGITS = 18


@functools.lru_cache(maxsize=32)
def _markers(tag: str) -> tuple[re.Pattern[str], re.Pattern[str]]:
    name = re.escape(tag)
    start = re.compile(rf"<{_NAME_PREFIX}{name}(?:\s[^<>]*)?>")
    end = re.compile(rf"</{_NAME_PREFIX}{name}\s*>")
    return start, end


def extract_field(fragment: str, tag: str) -> int:
    """Return the unsigned integer enclosed by the first *tag* element.

    Matching accepts a namespace prefix (``<sdn:Year>``), attributes on the
    start tag and whitespace around the value.

    Raises :class:`ExtractionError` when the element is absent, when the
    fragment ends before its closing marker, or when the content is not a
    decimal integer of at most 18 digits.
    """
    start_re, end_re = _markers(tag)

    start = start_re.search(fragment)
    if start is None:
        raise ExtractionError(f"<{tag}> not found in document prefix", tag=tag)
    if start.group(0).endswith("/>"):
        raise ExtractionError(f"<{tag}> is an empty element", tag=tag)

    end = end_re.search(fragment, start.end())
    if end is None:
        raise ExtractionError(f"document prefix truncated inside <{tag}>", tag=tag)

    raw = fragment[start.end() : end.start()].strip()
    if not (raw.isascii() and raw.isdigit()):
        raise ExtractionError(f"<{tag}> is not numeric: {raw[:32]!r}", tag=tag)
    if len(raw) > _MAX_DIGITS:
        raise ExtractionError(f"<{tag}> value too long ({len(raw)} digits)", tag=tag)
    return int(raw)
