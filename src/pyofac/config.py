"""Client configuration for pyofac."""

from __future__ import annotations

import dataclasses
import os
from typing import Any

from pyofac._constants import (
    BTC_FEATURE_TYPE_ID,
    DEFAULT_PARSE_CHUNK_SIZE,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_PROBE_BYTES,
    DEFAULT_PROBE_TIMEOUT,
    DEFAULT_REQUEST_TIMEOUT,
    OFAC_URL,
)
from pyofac.exceptions import ConfigError
from pyofac.registry import MergeStrategy


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_csv(value: str) -> tuple[str, ...]:
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclasses.dataclass(frozen=True)
class SanctionsConfig:
    """Synchronization configuration.

    Parameters
    ----------
    url : str
        Location of the SDN advanced XML document.
    feature_type_ids : tuple[str, ...]
        ``FeatureTypeID`` values whose ``VersionDetail`` text is treated as
        a sanctioned address. Defaults to the Bitcoin address feature.
    poll_interval : float
        Seconds between two synchronization ticks.
    probe_bytes : int
        Maximum number of bytes read from the head of the document when
        probing its publish date.
    probe_timeout : float
        Total timeout in seconds for the staleness probe request.
    request_timeout : float
        Total timeout in seconds for the full document download.
    merge_strategy : MergeStrategy
        How a completed pass is merged into the registry.
        ``APPEND`` never delists addresses; ``REPLACE`` mirrors the
        latest complete list.
    auto_start : bool
        Start the background scheduler when entering ``AddressVerifier``.
    parse_chunk_size : int
        Size of the text slices fed to the incremental XML parser.
    """

    url: str = OFAC_URL
    feature_type_ids: tuple[str, ...] = (BTC_FEATURE_TYPE_ID,)
    poll_interval: float = DEFAULT_POLL_INTERVAL
    probe_bytes: int = DEFAULT_PROBE_BYTES
    probe_timeout: float = DEFAULT_PROBE_TIMEOUT
    request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    merge_strategy: MergeStrategy = MergeStrategy.APPEND
    auto_start: bool = True
    parse_chunk_size: int = DEFAULT_PARSE_CHUNK_SIZE

    def __post_init__(self) -> None:
        if not self.url:
            raise ConfigError("url must be non-empty")
        if isinstance(self.feature_type_ids, str):
            object.__setattr__(self, "feature_type_ids", (self.feature_type_ids,))
        else:
            object.__setattr__(self, "feature_type_ids", tuple(self.feature_type_ids))
        if not self.feature_type_ids:
            raise ConfigError("feature_type_ids must contain at least one id")
        if not isinstance(self.merge_strategy, MergeStrategy):
            try:
                object.__setattr__(self, "merge_strategy", MergeStrategy(str(self.merge_strategy).lower()))
            except ValueError as exc:
                raise ConfigError(f"unknown merge_strategy: {self.merge_strategy!r}") from exc
        for name in ("poll_interval", "probe_timeout", "request_timeout"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")
        for name in ("probe_bytes", "parse_chunk_size"):
            if getattr(self, name) <= 0:
                raise ConfigError(f"{name} must be positive, got {getattr(self, name)}")

    @classmethod
    def from_env(cls, **overrides: Any) -> SanctionsConfig:
        """Create configuration from environment variables.

        Reads optional ``OFAC_*`` variables. Explicit keyword arguments
        override environment values.

        Parameters
        ----------
        **overrides
            Explicit field values that take precedence over env vars.

        Returns
        -------
        SanctionsConfig
            Populated configuration.

        Raises
        ------
        ConfigError
            If an environment value cannot be converted.
        """
        env = os.environ
        config_kwargs: dict[str, Any] = {}

        url = env.get("OFAC_URL")
        if url is not None:
            config_kwargs["url"] = url

        ids_env = env.get("OFAC_FEATURE_TYPE_IDS")
        if ids_env is not None:
            config_kwargs["feature_type_ids"] = _env_csv(ids_env)

        _ENV_NUMERIC_MAP: dict[str, tuple[str, type]] = {
            "OFAC_POLL_INTERVAL": ("poll_interval", float),
            "OFAC_PROBE_BYTES": ("probe_bytes", int),
            "OFAC_PROBE_TIMEOUT": ("probe_timeout", float),
            "OFAC_REQUEST_TIMEOUT": ("request_timeout", float),
        }
        for env_key, (field_name, convert) in _ENV_NUMERIC_MAP.items():
            val = env.get(env_key)
            if val is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = convert(val)
            except ValueError as exc:
                raise ConfigError(f"{env_key} must be numeric, got {val!r}") from exc

        strategy_env = env.get("OFAC_MERGE_STRATEGY")
        if strategy_env is not None and "merge_strategy" not in overrides:
            config_kwargs["merge_strategy"] = strategy_env.strip().lower()

        if "auto_start" not in overrides:
            config_kwargs["auto_start"] = _env_bool(env.get("OFAC_AUTO_START"), True)

        config_kwargs.update(overrides)

        return cls(**config_kwargs)
