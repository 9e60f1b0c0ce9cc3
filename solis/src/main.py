"""
Poller daemon main loop for the SolisCloud telemetry pipeline.

Startup runs the inventory warmup once, then the poll loop repeats forever:

1. For each device id captured at warmup, in order: fetch the detail record,
   resolve its observation time, classify, map the residual, and hand the
   resulting metric points to the sink; then pause ``device_interval_s``.
2. Pause ``cycle_interval_s`` before the next full cycle.

Only one cycle runs at a time and device fetches never overlap. The first
error anywhere unwinds the whole loop: the sink is closed (best effort) and
the process exits with status 1 so an external supervisor can restart it.
SIGTERM/SIGINT end the loop cleanly between devices or during the
inter-cycle pause.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-19: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import hashlib
import json
import logging
import signal
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from solis.src.classifier import classify
from solis.src.errors import SolisError
from solis.src.fallback import ZeroSuppression, map_residual
from solis.src.metrics import MetricPoint, build_points
from solis.src.timestamps import resolve_timestamp

if TYPE_CHECKING:
    from solis.src.config import SolisSettings
    from solis.src.models import RawDetail
    from solis.src.poller import Poller
    from solis.src.sink import Sink

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging on stderr.

    Args:
        level: Root log level name.
    """

    class _JsonFormatter(logging.Formatter):
        """Minimal JSON log formatter."""

        def format(self, record: logging.LogRecord) -> str:
            log_entry = {
                "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
                "level": record.levelname,
                "logger": record.name,
                "msg": record.getMessage(),
            }
            if record.exc_info and record.exc_info[1] is not None:
                log_entry["exception"] = self.formatException(record.exc_info)
            return json.dumps(log_entry)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(_JsonFormatter())
    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)


def _masked_token(value: str | None) -> str:
    """Return a short non-reversible token fingerprint for diagnostics."""
    if not value:
        return "empty"
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()[:10]
    return f"len={len(value)} sha256={digest}"


def log_config_summary(settings: SolisSettings) -> None:
    """Log a config summary at startup with the key and secret masked."""
    logger.info(
        "Poller starting with config: "
        "solis_api=%s, request_timeout_s=%s, device_interval_s=%s, "
        "cycle_interval_s=%s, zero_suppression=%s, sink_url=%s, "
        "solis_key_masked=%s, solis_secret_masked=%s",
        settings.solis_api,
        settings.request_timeout_s,
        settings.device_interval_s,
        settings.cycle_interval_s,
        settings.zero_suppression,
        settings.sink_url or "<stdout>",
        _masked_token(settings.solis_key),
        _masked_token(settings.solis_secret),
    )


def _utc_now() -> datetime:
    return datetime.now(tz=UTC)


# ---------------------------------------------------------------------------
# Single-device and single-cycle functions (easily testable)
# ---------------------------------------------------------------------------


def process_detail(
    device_id: str,
    detail: RawDetail,
    *,
    now: datetime,
    zero_suppression: ZeroSuppression | None = None,
) -> list[MetricPoint]:
    """Turn one raw detail record into labelled metric points.

    Raises:
        UnitError: If a classified field carries an unknown unit.
        FieldError: If a classified field's value is not numeric, or two
            residual fields map to the same canonical key.
    """
    when = resolve_timestamp(detail, now=now)
    classification = classify(detail)
    fallback = map_residual(
        classification.residual,
        zero_suppression=zero_suppression,
        device_id=device_id,
    )
    points = build_points(device_id, classification.metrics, fallback, when)
    logger.info(
        "Device %s: %d metric point(s) (%d classified, %d raw fields)",
        device_id,
        len(points),
        len(classification.metrics),
        len(fallback),
    )
    return points


async def run_cycle(
    *,
    poller: Poller,
    sink: Sink,
    shutdown_event: asyncio.Event,
    zero_suppression: ZeroSuppression | None = None,
    clock: Callable[[], datetime] = _utc_now,
) -> int:
    """Poll every device once, in order, emitting each device's points.

    Errors are not caught: the first failure unwinds the cycle.

    Returns:
        Number of metric points written.
    """
    written = 0
    async with contextlib.aclosing(poller.iter_details()) as details:
        async for device_id, detail in details:
            points = process_detail(
                device_id,
                detail,
                now=clock(),
                zero_suppression=zero_suppression,
            )
            await sink.write(points)
            written += len(points)
            if shutdown_event.is_set():
                logger.info("Shutdown requested, stopping cycle early")
                break
    return written


async def run_loops(
    *,
    poller: Poller,
    sink: Sink,
    cycle_interval_s: float,
    shutdown_event: asyncio.Event,
    zero_suppression_enabled: bool = False,
    clock: Callable[[], datetime] = _utc_now,
) -> None:
    """Run polling cycles until shutdown_event is set or an error escapes.

    The zero-suppression memory lives here, for the life of the loop, and is
    passed explicitly into every cycle.

    Args:
        poller: Sequential detail fetcher over the warmup device list.
        sink: Destination for metric points.
        cycle_interval_s: Seconds between the end of one cycle and the next.
        shutdown_event: Event to signal graceful shutdown.
        zero_suppression_enabled: Enable the zero-suppression policy.
        clock: Wall-clock source.
    """
    zero_suppression = ZeroSuppression() if zero_suppression_enabled else None
    logger.info(
        "Poll loop started (devices=%d, interval=%ss)",
        len(poller.device_ids),
        cycle_interval_s,
    )
    while not shutdown_event.is_set():
        written = await run_cycle(
            poller=poller,
            sink=sink,
            shutdown_event=shutdown_event,
            zero_suppression=zero_suppression,
            clock=clock,
        )
        logger.info("Cycle complete: %d metric point(s) written", written)
        # Use wait with timeout so we can check shutdown between sleeps
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(shutdown_event.wait(), timeout=cycle_interval_s)
    logger.info("Poll loop stopped")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


def build_sink(settings: SolisSettings) -> Sink:
    """Pick the sink named by the settings."""
    from solis.src.sink import StreamSink, VictoriaMetricsSink

    if settings.sink_url:
        return VictoriaMetricsSink(settings.sink_url, timeout_s=settings.request_timeout_s)
    return StreamSink()


async def _close_sink(sink: Sink) -> None:
    """Best-effort sink shutdown; a failure here must not mask the cause."""
    try:
        await sink.aclose()
    except Exception:
        logger.warning("Failed to close sink cleanly", exc_info=True)


async def async_main() -> None:
    """Async entrypoint: load config, warm up, run the poll loop.

    Raises:
        SolisError: Any fatal configuration, transport, protocol, or unit
            error, after the sink has been closed.
    """
    configure_logging()

    from solis.src.client import SolisCloudClient
    from solis.src.config import load_settings
    from solis.src.poller import Poller, warmup

    settings = load_settings()
    configure_logging(settings.log_level)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    sink = build_sink(settings)
    try:
        async with SolisCloudClient(
            settings.credential(),
            timeout_s=settings.request_timeout_s,
        ) as client:
            device_ids = await warmup(client)
            poller = Poller(
                client,
                device_ids,
                device_interval_s=settings.device_interval_s,
            )
            await run_loops(
                poller=poller,
                sink=sink,
                cycle_interval_s=settings.cycle_interval_s,
                shutdown_event=shutdown_event,
                zero_suppression_enabled=settings.zero_suppression,
            )
    finally:
        await _close_sink(sink)
        logger.info("Shutdown complete")


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint; exits non-zero on any fatal error."""
    try:
        asyncio.run(async_main())
    except SolisError:
        logger.error("Fatal error, exiting", exc_info=True)
        sys.exit(1)
    except Exception:
        logger.critical("Unexpected fatal error, exiting", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
