"""Custom exception hierarchy for pyofac."""

from __future__ import annotations


class SanctionsError(Exception):
    """Base exception for all pyofac errors."""


class ConfigError(SanctionsError):
    """Invalid or missing configuration."""


class TransportError(SanctionsError):
    """HTTP-level failure (network, timeout, non-200)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)


class DecodeError(SanctionsError):
    """Downloaded bytes are not valid UTF-8 text."""


class ExtractionError(SanctionsError):
    """An expected field is absent from the probed prefix or is not numeric.

    Raised by the field extractor when the start marker is missing, when the
    prefix ends before the closing marker (truncated probe), or when the
    enclosed text is not an unsigned decimal integer.
    """

    def __init__(self, message: str, *, tag: str = "") -> None:
        self.tag = tag
        super().__init__(message)


class DateConstructionError(SanctionsError):
    """Extracted year/month/day do not form a valid calendar date."""


class ParseEventError(SanctionsError):
    """Malformed markup encountered mid-stream.

    Aborts the remainder of a parse pass. Addresses captured before the
    error are kept.
    """

    def __init__(
        self,
        message: str,
        *,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        self.line = line
        self.column = column
        super().__init__(message)
