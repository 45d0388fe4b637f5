"""
Edge daemon main loop for the Teleinfo-to-MQTT bridge.

Runs one asyncio read loop:

1. Open the TIC serial port (:class:`SerialSource`).
2. Drive a :class:`RecordStream` over the port's chunks; every decoded
   :class:`TeleinfoRecord` is published to MQTT and recorded in the health
   file.
3. When the port fails or cannot be opened, log the error and reopen it
   after an exponential backoff (capped at MAX_BACKOFF_S).

A failure while handling one record is logged and does not stop the loop.
Graceful shutdown on SIGTERM/SIGINT sets a shared asyncio.Event; the reader
stops after the chunk in flight, the stream resolves the frame in flight,
and the MQTT publisher disconnects.

Structured JSON logging is used for all events.

CHANGELOG:
- 2026-10-18: Initial creation
- 2026-10-18: One health write per record; dropped frames written as they
  are reported

TODO:
- None
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
import signal
import sys
from collections.abc import Callable
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import serial

from teleinfo_edge.src.errors import (
    FramingError,
    IncompleteFrameError,
    SourceExhaustedError,
    log_event,
)
from teleinfo_edge.src.stream import RecordStream

if TYPE_CHECKING:
    from teleinfo_edge.src.health import HealthWriter
    from teleinfo_edge.src.models import TeleinfoRecord
    from teleinfo_edge.src.publisher import MqttPublisher
    from teleinfo_edge.src.serial_reader import SerialSource

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

BASE_BACKOFF_S: float = 1.0
"""Initial delay before reopening the serial port after a failure."""

MAX_BACKOFF_S: float = 60.0
"""Maximum reopen delay in seconds (cap for exponential growth)."""


# ---------------------------------------------------------------------------
# Structured JSON logging setup
# ---------------------------------------------------------------------------


def configure_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging for the edge daemon.

    Sets up the root logger with a JSON-formatted handler writing to stderr.

    Args:
        level: Root logger level name.
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


# ---------------------------------------------------------------------------
# Startup config logging
# ---------------------------------------------------------------------------


def log_config_summary(settings: object) -> None:
    """Log a config summary at startup, excluding secrets.

    Logs serial line settings, framing options, broker location and topic
    but deliberately omits mqtt_password.

    Args:
        settings: A TeleinfoSettings instance (or any object with the same attrs).
    """
    logger.info(
        "Edge daemon starting with config: "
        "serial_device=%s, serial_line=%s %s%s%s, serial_timeout_s=%s, "
        "tic_separator=%s, max_frame_size=%s, "
        "mqtt_host=%s, mqtt_port=%s, mqtt_client_id=%s, mqtt_username=%s, "
        "mqtt_topic_prefix=%s, mqtt_qos=%s, mqtt_retain=%s, health_path=%s",
        settings.serial_device,  # type: ignore[attr-defined]
        settings.serial_baudrate,  # type: ignore[attr-defined]
        settings.serial_bytesize,  # type: ignore[attr-defined]
        settings.serial_parity,  # type: ignore[attr-defined]
        settings.serial_stopbits,  # type: ignore[attr-defined]
        settings.serial_timeout_s,  # type: ignore[attr-defined]
        settings.tic_separator,  # type: ignore[attr-defined]
        settings.max_frame_size,  # type: ignore[attr-defined]
        settings.mqtt_host,  # type: ignore[attr-defined]
        settings.mqtt_port,  # type: ignore[attr-defined]
        settings.mqtt_client_id,  # type: ignore[attr-defined]
        settings.mqtt_username or "none",  # type: ignore[attr-defined]
        settings.mqtt_topic_prefix,  # type: ignore[attr-defined]
        settings.mqtt_qos,  # type: ignore[attr-defined]
        settings.mqtt_retain,  # type: ignore[attr-defined]
        settings.health_path,  # type: ignore[attr-defined]
    )


# ---------------------------------------------------------------------------
# Single-iteration functions (easily testable)
# ---------------------------------------------------------------------------


def _handle_record(
    record: TeleinfoRecord,
    *,
    publisher: MqttPublisher,
    health: HealthWriter | None,
    dropped_frames: int = 0,
) -> bool:
    """Publish one record and update the health file.

    Catches all exceptions so that the caller's loop is never broken.

    Args:
        record: The decoded record.
        publisher: The MQTT publisher.
        health: HealthWriter instance, or None to skip health writes.
        dropped_frames: Dropped frame total to write to the health file.

    Returns:
        True if the record was published, False otherwise.
    """
    published = False
    try:
        published = publisher.publish(record)
        if published:
            logger.info("Published record for meter %s", record.adco)
    except Exception:
        logger.error("Publish error", exc_info=True)

    if health is not None:
        try:
            health.update(record=True, published=published, dropped_frames=dropped_frames)
        except Exception:
            logger.warning("Failed to write health file", exc_info=True)

    return published


async def _read_once(
    *,
    source: SerialSource,
    publisher: MqttPublisher,
    health: HealthWriter | None,
    shutdown_event: asyncio.Event,
    separator: str = "\t",
    max_frame_size: int = 1024,
    dropped_base: int = 0,
) -> tuple[int, int]:
    """Open the source and publish records until it ends or shutdown.

    Never raises for device problems: a failed open or a
    :class:`SourceExhaustedError` is logged and the counts so far returned.

    Args:
        source: The serial byte source (not yet open).
        publisher: The MQTT publisher.
        health: HealthWriter instance, or None to skip health writes.
        shutdown_event: Event to signal graceful shutdown.
        separator: TIC field separator.
        max_frame_size: Largest accepted frame body.
        dropped_base: Frames dropped by earlier sessions, for the health file.

    Returns:
        ``(records, dropped_frames)`` decoded and dropped in this session.
    """
    try:
        source.open()
    except serial.SerialException:
        logger.error("Failed to open serial source", exc_info=True)
        return 0, 0

    def _report(event: Exception) -> None:
        log_event(event)
        if health is not None and isinstance(event, (FramingError, IncompleteFrameError)):
            try:
                health.update(dropped_frames=dropped_base + stream.stats.dropped_frames)
            except Exception:
                logger.warning("Failed to write health file", exc_info=True)

    stream = RecordStream(
        source.aiter_chunks(shutdown_event),
        report=_report,
        separator=separator,
        max_frame_size=max_frame_size,
    )
    records = 0
    try:
        async for record in stream:
            records += 1
            _handle_record(
                record,
                publisher=publisher,
                health=health,
                dropped_frames=dropped_base + stream.stats.dropped_frames,
            )
    except SourceExhaustedError:
        logger.error("Serial source failed", exc_info=True)
    finally:
        source.close()

    logger.info(
        "Read session ended: frames=%d records=%d dropped=%d",
        stream.stats.frames,
        records,
        stream.stats.dropped_frames,
    )
    return records, stream.stats.dropped_frames


# ---------------------------------------------------------------------------
# Loop runner
# ---------------------------------------------------------------------------


async def run_reader(
    *,
    source_factory: Callable[[], SerialSource],
    publisher: MqttPublisher,
    shutdown_event: asyncio.Event,
    health: HealthWriter | None = None,
    separator: str = "\t",
    max_frame_size: int = 1024,
) -> None:
    """Run read sessions until shutdown, reopening the source on failure.

    Consecutive sessions that decode no record back off exponentially
    (BASE_BACKOFF_S doubling up to MAX_BACKOFF_S); the delay resets as soon
    as a session produces a record.

    Args:
        source_factory: Builds a fresh, unopened byte source per session.
        publisher: The MQTT publisher.
        shutdown_event: Event to signal graceful shutdown.
        health: HealthWriter instance, or None to skip health writes.
        separator: TIC field separator.
        max_frame_size: Largest accepted frame body.
    """
    logger.info("Read loop started")
    consecutive_failures = 0
    dropped_total = 0

    while not shutdown_event.is_set():
        if consecutive_failures > 0:
            delay = min(
                BASE_BACKOFF_S * (2 ** (consecutive_failures - 1)),
                MAX_BACKOFF_S,
            )
            logger.warning(
                "Backoff: sleeping %.1fs before reopening (consecutive failures: %d)",
                delay,
                consecutive_failures,
            )
            # Use wait with timeout so we can check shutdown between sleeps
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(shutdown_event.wait(), timeout=delay)
            if shutdown_event.is_set():
                break

        records, dropped = await _read_once(
            source=source_factory(),
            publisher=publisher,
            health=health,
            shutdown_event=shutdown_event,
            separator=separator,
            max_frame_size=max_frame_size,
            dropped_base=dropped_total,
        )
        dropped_total += dropped
        consecutive_failures = 0 if records else consecutive_failures + 1

    logger.info("Read loop stopped")


# ---------------------------------------------------------------------------
# Entrypoint
# ---------------------------------------------------------------------------


async def async_main() -> None:
    """Async entrypoint: load config, build components, run the read loop.

    Sets up SIGTERM/SIGINT handlers to trigger graceful shutdown.
    """
    from teleinfo_edge.src.config import TeleinfoSettings
    from teleinfo_edge.src.health import HealthWriter
    from teleinfo_edge.src.publisher import MqttPublisher
    from teleinfo_edge.src.serial_reader import SerialSource

    settings = TeleinfoSettings()
    configure_logging(settings.log_level)
    log_config_summary(settings)

    shutdown_event = asyncio.Event()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig,
            lambda: _handle_signal(shutdown_event),
        )

    def _make_source() -> SerialSource:
        return SerialSource(
            device=settings.serial_device,
            baudrate=settings.serial_baudrate,
            bytesize=settings.serial_bytesize,
            parity=settings.serial_parity,
            stopbits=settings.serial_stopbits,
            timeout_s=settings.serial_timeout_s,
        )

    publisher = MqttPublisher(
        host=settings.mqtt_host,
        port=settings.mqtt_port,
        client_id=settings.mqtt_client_id,
        topic_prefix=settings.mqtt_topic_prefix,
        qos=settings.mqtt_qos,
        retain=settings.mqtt_retain,
        username=settings.mqtt_username,
        password=settings.mqtt_password,
    )
    health = HealthWriter(settings.health_path)

    publisher.connect()
    try:
        await run_reader(
            source_factory=_make_source,
            publisher=publisher,
            shutdown_event=shutdown_event,
            health=health,
            separator=settings.separator,
            max_frame_size=settings.max_frame_size,
        )
    finally:
        publisher.disconnect()
    logger.info("Shutdown complete")


def _handle_signal(shutdown_event: asyncio.Event) -> None:
    """Handle SIGTERM/SIGINT by setting the shutdown event.

    Args:
        shutdown_event: The event to set for graceful shutdown.
    """
    logger.info("Received shutdown signal, initiating graceful shutdown")
    shutdown_event.set()


def main() -> None:
    """Synchronous entrypoint for the edge daemon."""
    asyncio.run(async_main())


if __name__ == "__main__":
    main()
