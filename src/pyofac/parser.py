"""Streaming extraction of sanctioned addresses from the SDN advanced XML.

The document is large and only a handful of ``Feature`` elements matter, so
it is never materialized as a tree. Markup is turned into a flat sequence of
:class:`MarkupEvent` values and driven through a three-state machine:

``OUTSIDE`` -> ``FEATURE_CANDIDATE`` on a ``<Feature>`` whose
``FeatureTypeID`` is a target id, ``FEATURE_CANDIDATE`` -> ``CAPTURING`` on
``<VersionDetail>``; while capturing, character content is an address.
``</VersionDetail>`` (or leaving the feature) resets to ``OUTSIDE``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import StrEnum
from xml.etree import ElementTree

from pyofac._constants import (
    BTC_FEATURE_TYPE_ID,
    DEFAULT_PARSE_CHUNK_SIZE,
    FEATURE_TAG,
    FEATURE_TYPE_ATTR,
    VERSION_DETAIL_TAG,
)
from pyofac.exceptions import ParseEventError

_logger = logging.getLogger(__name__)


class ParserState(StrEnum):
    OUTSIDE = "outside"
    FEATURE_CANDIDATE = "feature_candidate"
    CAPTURING = "capturing"


class EventKind(StrEnum):
    START = "start"
    END = "end"
    TEXT = "text"


@dataclass(frozen=True, slots=True)
class MarkupEvent:
    """A single markup event with namespace-free names."""

    kind: EventKind
    name: str = ""
    attributes: Mapping[str, str] = field(default_factory=dict)
    text: str = ""


@dataclass(frozen=True, slots=True)
class ParseResult:
    """Addresses captured by one pass and the error that aborted it, if any."""

    addresses: frozenset[str]
    error: ParseEventError | None = None

    @property
    def complete(self) -> bool:
        return self.error is None


def _local_name(tag: str) -> str:
    # ElementTree spells namespaced names as "{uri}Local".
    return tag.rsplit("}", 1)[-1]


class _TreeCursor:
    """Open elements plus the last finished child whose tail is not yet known.

    ElementTree only assigns a child's ``tail`` once the next tag has been
    parsed, so tail text is flushed on the following event.
    """

    def __init__(self) -> None:
        self.stack: list[ElementTree.Element] = []
        self.finished: ElementTree.Element | None = None

    def flush_tail(self) -> Iterator[MarkupEvent]:
        elem = self.finished
        if elem is None:
            return
        self.finished = None
        tail = (elem.tail or "").strip()
        if tail and self.stack:
            yield MarkupEvent(EventKind.TEXT, _local_name(self.stack[-1].tag), text=tail)

        # Drop handled subtrees so memory stays flat across the document.
        elem.clear()
        if self.stack:
            self.stack[-1].remove(elem)


def _drain(parser: ElementTree.XMLPullParser, cursor: _TreeCursor) -> Iterator[MarkupEvent]:
    for event, elem in parser.read_events():
        yield from cursor.flush_tail()
        name = _local_name(elem.tag)
        if event == "start":
            cursor.stack.append(elem)
            attributes = {_local_name(key): value for key, value in elem.attrib.items()}
            yield MarkupEvent(EventKind.START, name, attributes)
            continue

        text = (elem.text or "").strip()
        if text:
            yield MarkupEvent(EventKind.TEXT, name, text=text)
        yield MarkupEvent(EventKind.END, name)

        cursor.stack.pop()
        cursor.finished = elem


def iter_markup_events(chunks: Iterable[str | bytes]) -> Iterator[MarkupEvent]:
    """Yield markup events for a document delivered as *chunks*.

    Character content is stripped and blank content is skipped. An
    element's leading text is reported right before its END event; text
    following a child element is reported, attributed to the enclosing
    element, right after that child's END event.

    Raises :class:`ParseEventError` on malformed markup, after every event
    that preceded the error has been yielded.
    """
    parser = ElementTree.XMLPullParser(events=("start", "end"))
    cursor = _TreeCursor()
    try:
        for chunk in chunks:
            parser.feed(chunk)
            yield from _drain(parser, cursor)
        parser.close()
        yield from _drain(parser, cursor)
    except ElementTree.ParseError as exc:
        line, column = getattr(exc, "position", (None, None))
        raise ParseEventError(f"malformed markup: {exc}", line=line, column=column) from exc


def transition(
    state: ParserState,
    event: MarkupEvent,
    feature_type_ids: frozenset[str] | set[str] | tuple[str, ...],
) -> tuple[ParserState, str | None]:
    """Advance the state machine by one event.

    Returns the next state and, when *event* is captured content, the
    address it carries.
    """
    if event.kind is EventKind.START:
        if (
            state is ParserState.OUTSIDE
            and event.name == FEATURE_TAG
            and event.attributes.get(FEATURE_TYPE_ATTR) in feature_type_ids
        ):
            return ParserState.FEATURE_CANDIDATE, None
        if state is ParserState.FEATURE_CANDIDATE and event.name == VERSION_DETAIL_TAG:
            return ParserState.CAPTURING, None
        return state, None

    if event.kind is EventKind.TEXT:
        if state is ParserState.CAPTURING:
            return state, event.text
        return state, None

    if state is not ParserState.OUTSIDE and event.name in (VERSION_DETAIL_TAG, FEATURE_TAG):
        return ParserState.OUTSIDE, None
    return state, None


def _slices(document: str | bytes, size: int) -> Iterator[str | bytes]:
    for offset in range(0, len(document), size):
        yield document[offset : offset + size]


class SanctionsParser:
    """Extract target-feature addresses from a full SDN document."""

    def __init__(
        self,
        feature_type_ids: Iterable[str] = (BTC_FEATURE_TYPE_ID,),
        *,
        chunk_size: int = DEFAULT_PARSE_CHUNK_SIZE,
    ) -> None:
        self._feature_type_ids = frozenset(feature_type_ids)
        self._chunk_size = chunk_size

    @property
    def feature_type_ids(self) -> frozenset[str]:
        return self._feature_type_ids

    def iter_addresses(self, document: str | bytes) -> Iterator[str]:
        """Yield qualifying addresses in document order.

        A :class:`ParseEventError` propagates once the addresses preceding
        the malformed markup have been yielded.
        """
        state = ParserState.OUTSIDE
        for event in iter_markup_events(_slices(document, self._chunk_size)):
            state, address = transition(state, event, self._feature_type_ids)
            if address is not None:
                yield address

    def parse(self, document: str | bytes) -> ParseResult:
        """Run one pass; a parse error ends the pass but keeps what was found."""
        found: set[str] = set()
        try:
            for address in self.iter_addresses(document):
                found.add(address)
        except ParseEventError as exc:
            _logger.error("Error parsing sanctions document: %s", exc)
            return ParseResult(addresses=frozenset(found), error=exc)
        return ParseResult(addresses=frozenset(found))
