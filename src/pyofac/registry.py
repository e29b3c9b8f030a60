"""In-memory registry of sanctioned addresses.

This is the only shared mutable state in the library. Writers build a new
immutable :class:`RegistrySnapshot` and swap it in under a lock; readers
load the current snapshot reference and never block, even while a sync
pass is running.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable
from enum import StrEnum
from typing import Protocol

from pydantic import BaseModel, ConfigDict, Field

_logger = logging.getLogger(__name__)


class MergeStrategy(StrEnum):
    """How a completed sync pass is folded into the registry."""

    APPEND = "append"
    REPLACE = "replace"


class AddressLookup(Protocol):
    """Read-only view handed to lookup consumers."""

    def is_sanctioned(self, address: str) -> bool:
        ...


class RegistrySnapshot(BaseModel):
    """A consistent (address set, publish timestamp) pair."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    addresses: frozenset[str] = Field(default_factory=frozenset)
    last_update: int = Field(default=0, description="Publish date (epoch seconds) of the last applied list.")


class SanctionsRegistry:
    """Concurrency-safe set of sanctioned addresses.

    Usage::

        registry = SanctionsRegistry()
        registry.apply({"1A2b3C"}, published_at=1_700_000_000)
        registry.is_sanctioned("1A2b3C")  # True
    """

    def __init__(self, *, merge_strategy: MergeStrategy = MergeStrategy.APPEND) -> None:
        self._merge_strategy = merge_strategy
        self._write_lock = threading.Lock()
        self._snapshot = RegistrySnapshot()

    @property
    def merge_strategy(self) -> MergeStrategy:
        return self._merge_strategy

    @property
    def last_update(self) -> int:
        return self._snapshot.last_update

    def snapshot(self) -> RegistrySnapshot:
        """Return the current snapshot (addresses and timestamp read together)."""
        return self._snapshot

    def is_sanctioned(self, address: str) -> bool:
        return address in self._snapshot.addresses

    def __contains__(self, address: object) -> bool:
        return address in self._snapshot.addresses

    def __len__(self) -> int:
        return len(self._snapshot.addresses)

    def _swap(self, addresses: frozenset[str], last_update: int) -> None:
        # Values are built internally; skip re-validating large sets.
        self._snapshot = RegistrySnapshot.model_construct(addresses=addresses, last_update=last_update)

    def record(self, address: str) -> None:
        """Mark *address* as sanctioned. Idempotent.

        Each call copies the address set; load many addresses at once
        through :meth:`apply` instead.
        """
        with self._write_lock:
            current = self._snapshot
            if address in current.addresses:
                return
            self._swap(current.addresses | {address}, current.last_update)

    def advance_timestamp(self, published_at: int) -> bool:
        """Move ``last_update`` forward to *published_at*.

        Only strictly newer values are accepted; anything else is a no-op.
        Returns whether the timestamp moved.
        """
        with self._write_lock:
            return self._commit_locked(self._snapshot.addresses, published_at)

    def _commit_locked(self, addresses: frozenset[str], published_at: int) -> bool:
        # Single point where last_update changes; caller holds the write lock.
        current = self._snapshot
        moved = published_at > current.last_update
        last_update = published_at if moved else current.last_update
        if moved or addresses is not current.addresses:
            self._swap(addresses, last_update)
        return moved

    def apply(self, addresses: Iterable[str], published_at: int, *, complete: bool = True) -> int:
        """Commit one sync pass atomically.

        The incoming set is merged according to the registry's
        :class:`MergeStrategy` and ``last_update`` is advanced through the
        same monotonic guard as :meth:`advance_timestamp`. ``REPLACE`` only
        takes effect for a *complete* pass that is newer than the current
        state; partial or stale passes are always appended so they can
        never delist an address.

        Returns the number of addresses that were not present before.
        """
        incoming = frozenset(addresses)
        with self._write_lock:
            current = self._snapshot
            added = len(incoming - current.addresses)

            if self._merge_strategy is MergeStrategy.REPLACE and complete and published_at > current.last_update:
                merged = incoming
                removed = len(current.addresses - incoming)
                if removed:
                    _logger.info("Delisted %d addresses no longer present in the list", removed)
            elif added:
                merged = current.addresses | incoming
            else:
                merged = current.addresses

            if not self._commit_locked(merged, published_at):
                _logger.debug(
                    "Publish date %d not newer than %d; timestamp unchanged",
                    published_at,
                    current.last_update,
                )
            return added
