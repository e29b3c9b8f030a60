"""HTTP transport for the remote sanctions document."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Any, Protocol

import aiohttp

from pyofac._constants import USER_AGENT
from pyofac.config import SanctionsConfig
from pyofac.exceptions import TransportError

_logger = logging.getLogger(__name__)


class SanctionsSource(Protocol):
    """Structural interface for anything that can serve the SDN document.

    The scheduler and prober only depend on this protocol, which keeps them
    testable with in-memory doubles.
    """

    async def fetch_head(self, max_bytes: int) -> bytes:
        ...

    async def fetch_document(self) -> bytes:
        ...


class HttpSanctionsSource:
    """Fetch the SDN document over HTTP with explicit per-request timeouts."""

    def __init__(self, config: SanctionsConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session

    @property
    def url(self) -> str:
        return self._config.url

    def _headers(self) -> dict[str, str]:
        return {"user-agent": USER_AGENT}

    def _check_status(self, resp: aiohttp.ClientResponse) -> None:
        if resp.status != 200:
            raise TransportError(
                f"HTTP {resp.status} from {self.url}",
                status_code=resp.status,
                url=self.url,
            )

    async def fetch_head(self, max_bytes: int) -> bytes:
        """Read at most *max_bytes* from the start of the document.

        The connection is closed as soon as enough bytes arrived; the rest
        of the body is never downloaded.
        """
        timeout = aiohttp.ClientTimeout(total=self._config.probe_timeout)
        buf = bytearray()

        _logger.debug("GET %s (head, %d bytes)", self.url, max_bytes)

        try:
            async with self._http.get(self.url, headers=self._headers(), timeout=timeout) as resp:
                self._check_status(resp)
                while len(buf) < max_bytes:
                    chunk = await resp.content.read(max_bytes - len(buf))
                    if not chunk:
                        break
                    buf.extend(chunk)
                resp.close()
        except TransportError:
            raise
        except aiohttp.ClientError as exc:
            raise TransportError(f"Head request to {self.url} failed: {exc}", url=self.url) from exc
        except TimeoutError as exc:
            raise TransportError(f"Head request to {self.url} timed out", url=self.url) from exc

        if not buf:
            raise TransportError(f"Empty response body from {self.url}", url=self.url)
        return bytes(buf)

    async def fetch_document(self) -> bytes:
        """Download the full document body."""
        timeout = aiohttp.ClientTimeout(total=self._config.request_timeout)

        _logger.debug("GET %s", self.url)

        try:
            async with self._http.get(self.url, headers=self._headers(), timeout=timeout) as resp:
                self._check_status(resp)
                return await resp.read()
        except TransportError:
            raise
        except aiohttp.ClientError as exc:
            raise TransportError(f"Request to {self.url} failed: {exc}", url=self.url) from exc
        except TimeoutError as exc:
            raise TransportError(f"Request to {self.url} timed out", url=self.url) from exc


class FileSanctionsSource:
    """Serve a locally stored copy of the SDN document."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)

    def _read_prefix(self, max_bytes: int) -> bytes:
        with self._path.open("rb") as fh:
            return fh.read(max_bytes)

    async def _run(self, fn: Callable[..., bytes], *args: Any) -> bytes:
        loop = asyncio.get_running_loop()
        try:
            return await loop.run_in_executor(None, fn, *args)
        except OSError as exc:
            raise TransportError(f"Cannot read {self._path}: {exc}", url=str(self._path)) from exc

    async def fetch_head(self, max_bytes: int) -> bytes:
        return await self._run(self._read_prefix, max_bytes)

    async def fetch_document(self) -> bytes:
        return await self._run(self._path.read_bytes)
