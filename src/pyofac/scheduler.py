"""Background synchronization of the sanctions registry.

Each tick runs a cheap staleness probe first and only downloads and parses
the full document when the remote publish date is newer than the one the
registry was built from. Every failure is contained at the cycle boundary;
the next tick is the only retry.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import time
from enum import StrEnum

from pydantic import BaseModel, ConfigDict

from pyofac._transport import SanctionsSource
from pyofac.config import SanctionsConfig
from pyofac.exceptions import DecodeError, SanctionsError
from pyofac.parser import SanctionsParser
from pyofac.probe import probe_publish_date
from pyofac.registry import SanctionsRegistry

_logger = logging.getLogger(__name__)


class SyncState(StrEnum):
    IDLE = "idle"
    PROBING = "probing"
    FETCHING = "fetching"
    PARSING = "parsing"


class SyncOutcome(StrEnum):
    UP_TO_DATE = "up_to_date"
    SYNCED = "synced"
    PARTIAL = "partial"
    PROBE_FAILED = "probe_failed"
    FETCH_FAILED = "fetch_failed"


class SyncReport(BaseModel):
    """Result of a single synchronization cycle."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    outcome: SyncOutcome
    published_at: int | None = None
    added: int = 0
    total: int = 0
    duration: float = 0.0
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.outcome in (SyncOutcome.UP_TO_DATE, SyncOutcome.SYNCED)


def decode_document(body: bytes) -> str:
    try:
        return body.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise DecodeError(f"sanctions document is not valid UTF-8: {exc}") from exc


class SanctionsSyncScheduler:
    """Drive probe -> fetch -> parse -> registry update on a fixed interval.

    The scheduler holds the write side of the registry; lookup consumers
    keep using the registry directly while a cycle is in progress.
    """

    def __init__(
        self,
        config: SanctionsConfig,
        registry: SanctionsRegistry,
        source: SanctionsSource,
        *,
        parser: SanctionsParser | None = None,
    ) -> None:
        self._config = config
        self._registry = registry
        self._source = source
        self._parser = parser or SanctionsParser(
            config.feature_type_ids,
            chunk_size=config.parse_chunk_size,
        )
        self._state = SyncState.IDLE
        self._cycle_lock = asyncio.Lock()
        self._stop_event = asyncio.Event()
        self._task: asyncio.Task[None] | None = None
        self._last_report: SyncReport | None = None

    @property
    def state(self) -> SyncState:
        return self._state

    @property
    def last_report(self) -> SyncReport | None:
        return self._last_report

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    # ------------------------------------------------------------------
    # Single cycle
    # ------------------------------------------------------------------

    async def run_cycle(self) -> SyncReport:
        """Run one synchronization tick. Never raises for sync failures."""
        async with self._cycle_lock:
            try:
                report = await self._cycle()
            except Exception as exc:
                _logger.exception("Unexpected sanctions sync failure")
                report = SyncReport(
                    outcome=SyncOutcome.FETCH_FAILED,
                    total=len(self._registry),
                    error=repr(exc),
                )
            finally:
                self._state = SyncState.IDLE
            self._last_report = report
            return report

    async def _cycle(self) -> SyncReport:
        self._state = SyncState.PROBING
        try:
            published_at = await probe_publish_date(self._source, max_bytes=self._config.probe_bytes)
        except SanctionsError as exc:
            _logger.warning("Couldn't extract the OFAC document publish date: %s", exc)
            return SyncReport(outcome=SyncOutcome.PROBE_FAILED, total=len(self._registry), error=str(exc))

        if published_at <= self._registry.last_update:
            _logger.info("OFAC list is up-to-date")
            return SyncReport(
                outcome=SyncOutcome.UP_TO_DATE,
                published_at=published_at,
                total=len(self._registry),
            )

        _logger.info("OFAC list syncing...")
        start = time.monotonic()

        self._state = SyncState.FETCHING
        try:
            body = await self._source.fetch_document()
            document = decode_document(body)
        except SanctionsError as exc:
            _logger.warning("Couldn't fetch OFAC list: %s", exc)
            return SyncReport(
                outcome=SyncOutcome.FETCH_FAILED,
                published_at=published_at,
                total=len(self._registry),
                error=str(exc),
            )

        self._state = SyncState.PARSING
        # Parsing is CPU-bound; keep the event loop responsive meanwhile.
        loop = asyncio.get_running_loop()
        result = await loop.run_in_executor(None, self._parser.parse, document)
        added = self._registry.apply(result.addresses, published_at, complete=result.complete)
        duration = time.monotonic() - start
        total = len(self._registry)

        if not result.complete:
            _logger.warning(
                "OFAC list partially synced in %.2fs (%d added, %d total)",
                duration,
                added,
                total,
            )
            return SyncReport(
                outcome=SyncOutcome.PARTIAL,
                published_at=published_at,
                added=added,
                total=total,
                duration=duration,
                error=str(result.error),
            )

        _logger.info("OFAC list synced in %.2fs (%d added, %d total)", duration, added, total)
        return SyncReport(
            outcome=SyncOutcome.SYNCED,
            published_at=published_at,
            added=added,
            total=total,
            duration=duration,
        )

    # ------------------------------------------------------------------
    # Background loop
    # ------------------------------------------------------------------

    async def run_forever(self) -> None:
        """Tick immediately, then every ``poll_interval`` seconds until stopped."""
        while not self._stop_event.is_set():
            await self.run_cycle()
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(self._stop_event.wait(), self._config.poll_interval)

    def start(self) -> asyncio.Task[None]:
        """Spawn the background loop on the running event loop."""
        if self._task is not None and not self._task.done():
            return self._task
        self._stop_event.clear()
        self._task = asyncio.get_running_loop().create_task(self.run_forever(), name="pyofac-sync")
        return self._task

    async def stop(self) -> None:
        """Stop the loop at the next cycle boundary and wait for it."""
        task = self._task
        self._task = None
        if task is None:
            return
        self._stop_event.set()
        await task
