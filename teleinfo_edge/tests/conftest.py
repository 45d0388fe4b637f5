"""
Shared test fixtures for Teleinfo edge daemon tests.

Provides environment variable fixtures for TeleinfoSettings configuration
tests (all edge env vars are cleaned before each test to ensure isolation)
and builders for raw TIC data sets and frames.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

from collections.abc import Callable

import pytest

# All TeleinfoSettings environment variable names, used for cleanup.
_ALL_EDGE_ENV_VARS = (
    "SERIAL_DEVICE",
    "SERIAL_BAUDRATE",
    "SERIAL_BYTESIZE",
    "SERIAL_PARITY",
    "SERIAL_STOPBITS",
    "SERIAL_TIMEOUT_S",
    "TIC_SEPARATOR",
    "MAX_FRAME_SIZE",
    "MQTT_HOST",
    "MQTT_PORT",
    "MQTT_CLIENT_ID",
    "MQTT_USERNAME",
    "MQTT_PASSWORD",
    "MQTT_TOPIC_PREFIX",
    "MQTT_QOS",
    "MQTT_RETAIN",
    "HEALTH_PATH",
    "LOG_LEVEL",
)

# One value per known label, as a real single-phase "base" meter sends them.
_FULL_VALUES = {
    "ADCO": "012345678912",
    "OPTARIF": "BASE",
    "ISOUSC": "30",
    "BASE": "002809718",
    "PTEC": "TH..",
    "IINST": "002",
    "IMAX": "090",
    "PAPP": "00390",
    "HHPHC": "A",
    "MOTDETAT": "000000",
}


def _checksum(label: str, value: str, sep: str) -> int:
    """Independent checksum arithmetic so tests do not trust the code under test."""
    return (sum(ord(c) for c in label + sep + value) & 0x3F) + 0x20


@pytest.fixture(autouse=True)
def _clean_edge_env(monkeypatch: pytest.MonkeyPatch, tmp_path: str) -> None:
    """Remove all edge env vars and isolate from .env files before each test.

    Changes working directory to tmp_path so no .env file is accidentally
    loaded by Pydantic BaseSettings.
    """
    for var in _ALL_EDGE_ENV_VARS:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture()
def env_vars_full(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set all required and optional environment variables for TeleinfoSettings.

    Returns the dict of env var names to values for assertion convenience.
    """
    env = {
        "SERIAL_DEVICE": "/dev/ttyUSB1",
        "SERIAL_BAUDRATE": "9600",
        "SERIAL_BYTESIZE": "8",
        "SERIAL_PARITY": "E",
        "SERIAL_STOPBITS": "2",
        "SERIAL_TIMEOUT_S": "0.5",
        "TIC_SEPARATOR": "space",
        "MAX_FRAME_SIZE": "2048",
        "MQTT_HOST": "broker.local",
        "MQTT_PORT": "8883",
        "MQTT_CLIENT_ID": "teleinfo-test",
        "MQTT_USERNAME": "meter",
        "MQTT_PASSWORD": "s3cret-password",
        "MQTT_TOPIC_PREFIX": "home/teleinfo",
        "MQTT_QOS": "1",
        "MQTT_RETAIN": "true",
        "HEALTH_PATH": "/tmp/health.json",
        "LOG_LEVEL": "DEBUG",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


@pytest.fixture()
def env_vars_required_only(monkeypatch: pytest.MonkeyPatch) -> dict[str, str]:
    """Set only the required environment variables (no optional ones).

    Optional variables should fall back to their defaults.
    """
    env = {
        "SERIAL_DEVICE": "/dev/ttyAMA0",
        "MQTT_HOST": "10.0.0.5",
    }
    for key, value in env.items():
        monkeypatch.setenv(key, value)
    return env


# ---------------------------------------------------------------------------
# TIC wire builders
# ---------------------------------------------------------------------------


@pytest.fixture()
def full_values() -> dict[str, str]:
    """A fresh copy of one valid value per known label, in wire order."""
    return dict(_FULL_VALUES)


@pytest.fixture()
def make_dataset() -> Callable[..., bytes]:
    """Return a builder for ``LF label SEP value SEP checksum CR``.

    ``checksum`` overrides the computed checksum byte when given.
    """

    def _build(label: str, value: str, checksum: int | None = None, sep: str = "\t") -> bytes:
        if checksum is None:
            checksum = _checksum(label, value, sep)
        return b"\n" + f"{label}{sep}{value}{sep}".encode("ascii") + bytes([checksum]) + b"\r"

    return _build


@pytest.fixture()
def make_frame(make_dataset: Callable[..., bytes]) -> Callable[..., bytes]:
    """Return a builder for ``STX datasets ETX``.

    Args of the builder:
        values: Label -> value mapping (defaults to every known label).
        sep: Field separator.
        bad_checksum: Labels whose checksum byte is corrupted.
        body_only: Omit STX/ETX and return the frame body.
    """

    def _build(
        values: dict[str, str] | None = None,
        *,
        sep: str = "\t",
        bad_checksum: tuple[str, ...] = (),
        body_only: bool = False,
    ) -> bytes:
        if values is None:
            values = _FULL_VALUES
        body = b""
        for label, value in values.items():
            checksum = None
            if label in bad_checksum:
                # Flip one bit: always differs from the correct byte.
                checksum = _checksum(label, value, sep) ^ 0x01
            body += make_dataset(label, value, checksum, sep)
        return body if body_only else b"\x02" + body + b"\x03"

    return _build
