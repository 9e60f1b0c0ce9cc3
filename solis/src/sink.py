"""
Metric sinks: where encoded metric points are handed off.

Two implementations share the same small async interface
(``write(points)`` / ``aclose()``):

- :class:`StreamSink` writes newline-delimited JSON to a text stream
  (stdout by default), for piping into another process.
- :class:`VictoriaMetricsSink` POSTs the same lines to a
  VictoriaMetrics-compatible ``/api/v1/import`` endpoint. A network error
  or non-2xx status raises :class:`~solis.src.errors.TransportError`.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Sequence
from typing import Protocol, TextIO

import httpx

from solis.src.errors import TransportError
from solis.src.metrics import MetricPoint, encode_lines

logger = logging.getLogger(__name__)

IMPORT_PATH = "/api/v1/import"


class Sink(Protocol):
    async def write(self, points: Sequence[MetricPoint]) -> None: ...

    async def aclose(self) -> None: ...


class StreamSink:
    """Write metric points as JSON lines to a text stream.

    Args:
        stream: Destination; defaults to ``sys.stdout``.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream if stream is not None else sys.stdout

    async def write(self, points: Sequence[MetricPoint]) -> None:
        if not points:
            return
        self._stream.write(encode_lines(points))
        self._stream.flush()

    async def aclose(self) -> None:
        self._stream.flush()


class VictoriaMetricsSink:
    """POST metric points to a JSON-line import endpoint.

    Args:
        base_url: Base URL of the time-series database.
        timeout_s: Per-request timeout in seconds.
        transport: Optional httpx transport (tests inject a MockTransport).
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout_s: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._import_url = f"{base_url.rstrip('/')}{IMPORT_PATH}"
        self._http = httpx.AsyncClient(timeout=httpx.Timeout(timeout_s), transport=transport)

    async def write(self, points: Sequence[MetricPoint]) -> None:
        """Send *points* in one request.

        Raises:
            TransportError: On network failure or a non-2xx response.
        """
        if not points:
            return
        try:
            response = await self._http.post(
                self._import_url,
                content=encode_lines(points).encode("utf-8"),
                headers={"Content-Type": "application/x-ndjson"},
            )
        except httpx.HTTPError as exc:
            raise TransportError(f"metric import failed: {exc!r}") from exc

        if not response.is_success:
            raise TransportError(
                f"metric import returned HTTP {response.status_code}: "
                f"{response.text.strip()[:200]}",
                status_code=response.status_code,
            )
        logger.debug("Imported %d metric point(s)", len(points))

    async def aclose(self) -> None:
        await self._http.aclose()
