"""High-level async facade over the registry and its sync scheduler."""

from __future__ import annotations

import logging
from typing import Any

import aiohttp

from pyofac._transport import HttpSanctionsSource, SanctionsSource
from pyofac.config import SanctionsConfig
from pyofac.exceptions import SanctionsError
from pyofac.registry import AddressLookup, SanctionsRegistry
from pyofac.scheduler import SanctionsSyncScheduler, SyncReport

_logger = logging.getLogger(__name__)


class AddressVerifier:
    """Keep a sanctioned-address registry in sync with the OFAC list.

    Usage::

        async with AddressVerifier(SanctionsConfig()) as verifier:
            if verifier.is_sanctioned(address):
                ...

    The verifier owns an ``aiohttp.ClientSession`` unless one is passed in.
    A custom *source* (any :class:`SanctionsSource`) bypasses HTTP entirely.
    """

    def __init__(
        self,
        config: SanctionsConfig | None = None,
        *,
        session: aiohttp.ClientSession | None = None,
        source: SanctionsSource | None = None,
        registry: SanctionsRegistry | None = None,
    ) -> None:
        self._config = config or SanctionsConfig()
        self._external_session = session is not None
        self._http_session = session
        self._source = source
        self._registry = registry or SanctionsRegistry(merge_strategy=self._config.merge_strategy)
        self._scheduler: SanctionsSyncScheduler | None = None

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AddressVerifier:
        if self._source is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._source = HttpSanctionsSource(self._config, self._http_session)
        self._scheduler = SanctionsSyncScheduler(self._config, self._registry, self._source)
        if self._config.auto_start:
            _logger.debug("Starting sanctions sync every %.0fs from %s", self._config.poll_interval, self._config.url)
            self._scheduler.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if self._scheduler is not None:
            await self._scheduler.stop()
            self._scheduler = None
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
            self._source = None

    def _require_scheduler(self) -> SanctionsSyncScheduler:
        if self._scheduler is None:
            raise SanctionsError("Verifier not initialized. Use 'async with AddressVerifier(...) as verifier:'")
        return self._scheduler

    # ------------------------------------------------------------------
    # Sync control
    # ------------------------------------------------------------------

    async def sync(self) -> SyncReport:
        """Run one synchronization cycle now."""
        return await self._require_scheduler().run_cycle()

    def start(self) -> None:
        """Start periodic background synchronization."""
        self._require_scheduler().start()

    async def stop(self) -> None:
        """Stop background synchronization at the next cycle boundary."""
        if self._scheduler is not None:
            await self._scheduler.stop()

    @property
    def is_running(self) -> bool:
        return self._scheduler is not None and self._scheduler.is_running

    @property
    def last_report(self) -> SyncReport | None:
        return self._scheduler.last_report if self._scheduler is not None else None

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    @property
    def registry(self) -> SanctionsRegistry:
        return self._registry

    @property
    def lookup(self) -> AddressLookup:
        """Read-only view to hand to payout/transaction code."""
        return self._registry

    @property
    def last_update(self) -> int:
        return self._registry.last_update

    def is_sanctioned(self, address: str) -> bool:
        """Return True if *address* is on the synced sanctions list."""
        return self._registry.is_sanctioned(address)
