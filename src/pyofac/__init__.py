"""pyofac - Async OFAC sanctions list sync and address lookup."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("pyofac")
except PackageNotFoundError:
    __version__ = "0+local"
from pyofac._transport import FileSanctionsSource, HttpSanctionsSource, SanctionsSource
from pyofac.config import SanctionsConfig
from pyofac.exceptions import (
    ConfigError,
    DateConstructionError,
    DecodeError,
    ExtractionError,
    ParseEventError,
    SanctionsError,
    TransportError,
)
from pyofac.parser import ParserState, SanctionsParser
from pyofac.registry import AddressLookup, MergeStrategy, RegistrySnapshot, SanctionsRegistry
from pyofac.scheduler import SanctionsSyncScheduler, SyncOutcome, SyncReport, SyncState
from pyofac.verifier import AddressVerifier

__all__ = [
    "__version__",
    "AddressLookup",
    "AddressVerifier",
    "ConfigError",
    "DateConstructionError",
    "DecodeError",
    "ExtractionError",
    "FileSanctionsSource",
    "HttpSanctionsSource",
    "MergeStrategy",
    "ParseEventError",
    "ParserState",
    "RegistrySnapshot",
    "SanctionsConfig",
    "SanctionsError",
    "SanctionsParser",
    "SanctionsRegistry",
    "SanctionsSource",
    "SanctionsSyncScheduler",
    "SyncOutcome",
    "SyncReport",
    "SyncState",
    "TransportError",
]
