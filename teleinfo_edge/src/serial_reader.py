"""
Serial byte source for the meter TIC output.

Wraps a pyserial port configured for historical-mode Teleinfo (1200 baud,
7 data bits by default) and exposes it as chunk iterators that feed a
:class:`~teleinfo_edge.src.stream.RecordStream`:

- ``iter_chunks()``: blocking iterator, for scripts and tests.
- ``aiter_chunks(stop_event)``: async iterator; each read runs in a worker
  thread so the event loop stays responsive, and iteration stops once the
  event is set.

Read timeouts return no data and are skipped; device errors
(``serial.SerialException`` is an ``OSError``) propagate to the stream, which
turns them into a ``SourceExhaustedError``.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import AsyncIterator, Iterator
from types import TracebackType

import serial

logger = logging.getLogger(__name__)


class SerialSource:
    """Byte source reading from a TIC serial port.

    Args:
        device: Serial device path, e.g. ``/dev/ttyAMA0``.
        baudrate: Line speed (default 1200).
        bytesize: Data bits (default 7).
        parity: ``"N"``, ``"E"`` or ``"O"`` (default ``"N"``).
        stopbits: Stop bits (default 1).
        timeout_s: Read timeout in seconds (default 1.0).

    Usage::

        with SerialSource(device="/dev/ttyAMA0") as port:
            for chunk in port.iter_chunks():
                ...
    """

    def __init__(
        self,
        *,
        device: str,
        baudrate: int = 1200,
        bytesize: int = serial.SEVENBITS,
        parity: str = serial.PARITY_NONE,
        stopbits: int = serial.STOPBITS_ONE,
        timeout_s: float = 1.0,
    ) -> None:
        self._device = device
        self._baudrate = baudrate
        self._bytesize = bytesize
        self._parity = parity
        self._stopbits = stopbits
        self._timeout_s = timeout_s
        self._port: serial.Serial | None = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def open(self) -> None:
        """Open the serial port.

        Raises:
            serial.SerialException: If the device cannot be opened.
        """
        if self._port is not None:
            return
        self._port = serial.Serial(
            port=self._device,
            baudrate=self._baudrate,
            bytesize=self._bytesize,
            parity=self._parity,
            stopbits=self._stopbits,
            timeout=self._timeout_s,
        )
        logger.info(
            "Opened serial device %s (%d %d%s%d)",
            self._device,
            self._baudrate,
            self._bytesize,
            self._parity,
            self._stopbits,
        )

    def close(self) -> None:
        """Close the serial port. Safe to call more than once."""
        if self._port is not None:
            self._port.close()
            self._port = None
            logger.info("Closed serial device %s", self._device)

    @property
    def is_open(self) -> bool:
        return self._port is not None

    def __enter__(self) -> SerialSource:
        self.open()
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def read_chunk(self) -> bytes:
        """Read whatever is buffered, waiting up to the timeout for one byte.

        Returns:
            The bytes read; empty on timeout.

        Raises:
            serial.SerialException: If the port is closed or the device fails.
        """
        if self._port is None:
            raise serial.SerialException(f"Serial device {self._device} is not open")
        return self._port.read(self._port.in_waiting or 1)

    def iter_chunks(self) -> Iterator[bytes]:
        """Yield chunks until the port is closed."""
        while self._port is not None:
            data = self.read_chunk()
            if data:
                yield data

    async def aiter_chunks(self, stop_event: asyncio.Event) -> AsyncIterator[bytes]:
        """Yield chunks until *stop_event* is set or the port is closed."""
        while self._port is not None and not stop_event.is_set():
            data = await asyncio.to_thread(self.read_chunk)
            if data:
                yield data
