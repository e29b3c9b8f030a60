from __future__ import annotations

import pytest

from pyofac.exceptions import ParseEventError
from pyofac.parser import (
    EventKind,
    MarkupEvent,
    ParserState,
    SanctionsParser,
    iter_markup_events,
    transition,
)

_NS = "https://sanctionslistservice.ofac.treas.gov/api/PublicationPreview/exports/ADVANCED_XML"


def _feature(type_id: str, *values: str) -> str:
    versions = "".join(
        f'<FeatureVersion ID="1"><VersionDetail DetailTypeID="1432">{value}</VersionDetail></FeatureVersion>'
        for value in values
    )
    return f'<Feature ID="1" FeatureTypeID="{type_id}">{versions}</Feature>'


def _document(*features: str, extra: str = "") -> str:
    return (
        f'<?xml version="1.0" encoding="utf-8"?><Sanctions xmlns="{_NS}">'
        "<DateOfIssue><Year>2024</Year><Month>3</Month><Day>15</Day></DateOfIssue>"
        f"<DistinctParties><DistinctParty><Profile>{''.join(features)}</Profile></DistinctParty></DistinctParties>"
        f"{extra}</Sanctions>"
    )


def test_target_feature_address_is_captured() -> None:
    result = SanctionsParser().parse(_document(_feature("344", "1A2b3C")))

    assert result.complete
    assert result.addresses == frozenset({"1A2b3C"})


def test_non_target_feature_is_ignored() -> None:
    result = SanctionsParser().parse(_document(_feature("999", "zZyYxX")))

    assert result.addresses == frozenset()


def test_content_outside_feature_is_never_captured() -> None:
    document = _document(
        _feature("344", "1A2b3C"),
        extra="<VersionDetail>stray</VersionDetail><Comment>1BoatSLRHtKNngkdXEeobR76b53LETtpyT</Comment>",
    )

    assert SanctionsParser().parse(document).addresses == frozenset({"1A2b3C"})


def test_feature_without_version_detail_does_not_leak_into_next_feature() -> None:
    document = _document(
        '<Feature ID="9" FeatureTypeID="344"><Comment>none</Comment></Feature>',
        _feature("999", "zZyYxX"),
    )

    assert SanctionsParser().parse(document).addresses == frozenset()


def test_multiple_features_and_configurable_ids() -> None:
    document = _document(
        _feature("344", "bc1qaddr1"),
        _feature("344", "bc1qaddr2"),
        _feature("345", "0xethaddr"),
        _feature("999", "ignored"),
    )

    assert SanctionsParser().parse(document).addresses == frozenset({"bc1qaddr1", "bc1qaddr2"})
    assert SanctionsParser(["344", "345"]).parse(document).addresses == frozenset(
        {"bc1qaddr1", "bc1qaddr2", "0xethaddr"}
    )


def test_text_after_child_element_is_captured() -> None:
    document = '<S><Feature FeatureTypeID="344"><VersionDetail><Note/>1A2b3C</VersionDetail></Feature></S>'

    assert SanctionsParser().parse(document).addresses == frozenset({"1A2b3C"})


def test_text_after_child_element_survives_chunk_boundaries() -> None:
    document = _document(
        '<Feature FeatureTypeID="344"><VersionDetail><Note/>bc1qtail</VersionDetail></Feature>'
    )

    for chunk_size in (1, 3, 64):
        result = SanctionsParser(chunk_size=chunk_size).parse(document)
        assert result.addresses == frozenset({"bc1qtail"})


def test_text_after_child_outside_target_feature_is_ignored() -> None:
    document = '<S><Feature FeatureTypeID="999"><VersionDetail><Note/>zZyYxX</VersionDetail></Feature></S>'

    assert SanctionsParser().parse(document).addresses == frozenset()


def test_only_first_version_detail_of_a_feature_is_captured() -> None:
    result = SanctionsParser().parse(_document(_feature("344", "first", "second")))

    assert result.addresses == frozenset({"first"})


def test_small_chunks_produce_identical_result() -> None:
    document = _document(_feature("344", "1A2b3C"), _feature("344", "3J98t1WpEZ73CNmQviecrnyiWrnqRhWNLy"))

    whole = SanctionsParser().parse(document)
    chunked = SanctionsParser(chunk_size=7).parse(document)

    assert chunked.addresses == whole.addresses


def test_bytes_document_is_accepted() -> None:
    document = _document(_feature("344", "1A2b3C")).encode()

    assert SanctionsParser().parse(document).addresses == frozenset({"1A2b3C"})


def test_reparsing_is_idempotent() -> None:
    parser = SanctionsParser()
    document = _document(_feature("344", "1A2b3C"), _feature("344", "1A2b3C"))

    assert parser.parse(document).addresses == parser.parse(document).addresses == frozenset({"1A2b3C"})


def test_parse_error_keeps_addresses_captured_before_it() -> None:
    document = _document(_feature("344", "before")) + "<Feature FeatureTypeID='344'><VersionDetail>after</Oops>"
    # Trailing garbage after the root element is itself malformed markup.
    result = SanctionsParser().parse(document)

    assert not result.complete
    assert isinstance(result.error, ParseEventError)
    assert result.addresses == frozenset({"before"})


def test_mismatched_tag_aborts_rest_of_pass() -> None:
    document = (
        "<Sanctions>"
        + _feature("344", "first")
        + '<Feature FeatureTypeID="344"><VersionDetail>second</Version></Feature>'
        + _feature("344", "third")
        + "</Sanctions>"
    )

    result = SanctionsParser().parse(document)

    assert result.addresses == frozenset({"first"})
    assert result.error is not None
    assert result.error.line == 1


def test_iter_addresses_raises_after_yielding_prefix() -> None:
    document = "<Sanctions>" + _feature("344", "first") + "<Feature"
    addresses: list[str] = []

    with pytest.raises(ParseEventError):
        for address in SanctionsParser().iter_addresses(document):
            addresses.append(address)

    assert addresses == ["first"]


def test_markup_events_strip_namespaces_and_blank_text() -> None:
    document = f'<a:Root xmlns:a="{_NS}"><a:Feature a:FeatureTypeID="344">  x  </a:Feature>\n</a:Root>'

    events = list(iter_markup_events([document]))

    assert events == [
        MarkupEvent(EventKind.START, "Root", {}),
        MarkupEvent(EventKind.START, "Feature", {"FeatureTypeID": "344"}),
        MarkupEvent(EventKind.TEXT, "Feature", text="x"),
        MarkupEvent(EventKind.END, "Feature"),
        MarkupEvent(EventKind.END, "Root"),
    ]


def test_markup_events_report_tail_text_for_enclosing_element() -> None:
    events = list(iter_markup_events(["<VersionDetail><Note/> addr </VersionDetail>"]))

    assert events == [
        MarkupEvent(EventKind.START, "VersionDetail", {}),
        MarkupEvent(EventKind.START, "Note", {}),
        MarkupEvent(EventKind.END, "Note"),
        MarkupEvent(EventKind.TEXT, "VersionDetail", text="addr"),
        MarkupEvent(EventKind.END, "VersionDetail"),
    ]


class TestTransition:
    ids = frozenset({"344"})

    def _start(self, name: str, **attrs: str) -> MarkupEvent:
        return MarkupEvent(EventKind.START, name, attrs)

    def test_outside_to_candidate_on_target_feature(self) -> None:
        state, address = transition(ParserState.OUTSIDE, self._start("Feature", FeatureTypeID="344"), self.ids)
        assert state is ParserState.FEATURE_CANDIDATE
        assert address is None

    def test_outside_stays_on_other_feature(self) -> None:
        state, _ = transition(ParserState.OUTSIDE, self._start("Feature", FeatureTypeID="999"), self.ids)
        assert state is ParserState.OUTSIDE

    def test_version_detail_outside_feature_is_ignored(self) -> None:
        state, _ = transition(ParserState.OUTSIDE, self._start("VersionDetail"), self.ids)
        assert state is ParserState.OUTSIDE

    def test_candidate_to_capturing(self) -> None:
        state, _ = transition(ParserState.FEATURE_CANDIDATE, self._start("VersionDetail"), self.ids)
        assert state is ParserState.CAPTURING

    def test_capturing_emits_text(self) -> None:
        event = MarkupEvent(EventKind.TEXT, "VersionDetail", text="1A2b3C")
        state, address = transition(ParserState.CAPTURING, event, self.ids)
        assert state is ParserState.CAPTURING
        assert address == "1A2b3C"

    def test_text_while_candidate_is_not_emitted(self) -> None:
        event = MarkupEvent(EventKind.TEXT, "Comment", text="noise")
        assert transition(ParserState.FEATURE_CANDIDATE, event, self.ids) == (ParserState.FEATURE_CANDIDATE, None)

    @pytest.mark.parametrize("state", [ParserState.CAPTURING, ParserState.FEATURE_CANDIDATE])
    def test_version_detail_end_resets(self, state: ParserState) -> None:
        assert transition(state, MarkupEvent(EventKind.END, "VersionDetail"), self.ids) == (ParserState.OUTSIDE, None)

    def test_other_end_keeps_capturing(self) -> None:
        event = MarkupEvent(EventKind.END, "FeatureVersion")
        assert transition(ParserState.CAPTURING, event, self.ids) == (ParserState.CAPTURING, None)
