"""Cheap staleness probe for the remote sanctions document.

Reads the head of the SDN document and derives its publish date, so a sync
cycle can skip the slow download-and-parse path when nothing changed.
"""

from __future__ import annotations

import codecs
import logging
from datetime import UTC, datetime

from pyofac._constants import PUBLISH_DAY_TAG, PUBLISH_MONTH_TAG, PUBLISH_YEAR_TAG
from pyofac._extract import extract_field
from pyofac._transport import SanctionsSource
from pyofac.exceptions import DateConstructionError, DecodeError

_logger = logging.getLogger(__name__)


def decode_head(head: bytes) -> str:
    """Decode a UTF-8 prefix that may end in the middle of a character."""
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        return decoder.decode(head, final=False)
    except UnicodeDecodeError as exc:
        raise DecodeError(f"document head is not valid UTF-8: {exc}") from exc


def publish_date_from_head(head: bytes) -> int:
    """Return the publish date declared in *head* as a UTC midnight timestamp."""
    text = decode_head(head)
    year = extract_field(text, PUBLISH_YEAR_TAG)
    day = extract_field(text, PUBLISH_DAY_TAG)
    month = extract_field(text, PUBLISH_MONTH_TAG)
    _logger.debug("Probed publish date fields year=%s month=%s day=%s", year, month, day)

    try:
        published = datetime(year, month, day, tzinfo=UTC)
    except (ValueError, OverflowError) as exc:
        raise DateConstructionError(f"invalid publish date {year:04d}-{month:02d}-{day:02d}: {exc}") from exc
    return int(published.timestamp())


async def probe_publish_date(source: SanctionsSource, *, max_bytes: int) -> int:
    """Fetch the head of the remote document and return its publish date.

    Any failure (transport, decode, extraction, date) propagates; callers
    must treat it as "staleness unknown" and leave the registry untouched.
    """
    head = await source.fetch_head(max_bytes)
    return publish_date_from_head(head)
