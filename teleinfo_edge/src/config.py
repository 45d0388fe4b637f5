"""
Teleinfo edge daemon configuration loaded from environment variables.

Uses Pydantic BaseSettings for automatic env var loading and validation.
All configuration values come from environment variables or .env files;
no hardcoded device paths, broker hosts, or credentials.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings

_SEPARATORS = {"tab": "\t", "space": " "}


class TeleinfoSettings(BaseSettings):
    """Teleinfo edge daemon configuration.

    All values are loaded from environment variables. Required variables
    must be set; optional variables have sensible defaults.

    Attributes:
        serial_device: Serial device wired to the meter TIC output.
        serial_baudrate: Line speed; historical mode runs at 1200 baud.
        serial_bytesize: Data bits per character (7 or 8).
        serial_parity: Parity, one of ``N``, ``E``, ``O``.
        serial_stopbits: Stop bits (1 or 2).
        serial_timeout_s: Read timeout so the reader can notice shutdown.
        tic_separator: Field separator sent by the meter, ``tab`` or ``space``.
        max_frame_size: Frames longer than this many bytes are dropped.
        mqtt_host: MQTT broker hostname.
        mqtt_port: MQTT broker port (default 1883).
        mqtt_client_id: MQTT client identifier.
        mqtt_username: Optional broker username.
        mqtt_password: Optional broker password.
        mqtt_topic_prefix: Records go to ``<prefix>/<ADCO>``.
        mqtt_qos: MQTT quality of service (0-2).
        mqtt_retain: Publish records with the retain flag.
        health_path: JSON health file path.
        log_level: Root logger level.
    """

    serial_device: str
    serial_baudrate: int = 1200
    serial_bytesize: int = 7
    serial_parity: str = "N"
    serial_stopbits: int = 1
    serial_timeout_s: float = 1.0
    tic_separator: str = "tab"
    max_frame_size: int = 1024
    mqtt_host: str
    mqtt_port: int = 1883
    mqtt_client_id: str = "teleinfo-edge"
    mqtt_username: str | None = None
    mqtt_password: str | None = None
    mqtt_topic_prefix: str = "teleinfo"
    mqtt_qos: int = 0
    mqtt_retain: bool = False
    health_path: str = "/data/health.json"
    log_level: str = "INFO"

    @property
    def separator(self) -> str:
        """The separator character matching :attr:`tic_separator`."""
        return _SEPARATORS[self.tic_separator]

    @field_validator("serial_bytesize")
    @classmethod
    def serial_bytesize_must_be_valid(cls, v: int) -> int:
        """Validate data bits (TIC uses 7, USB dongles sometimes expose 8)."""
        if v not in (7, 8):
            raise ValueError("SERIAL_BYTESIZE must be 7 or 8")
        return v

    @field_validator("serial_parity")
    @classmethod
    def serial_parity_must_be_valid(cls, v: str) -> str:
        """Validate parity letter and normalise it to upper case."""
        v = v.upper()
        if v not in ("N", "E", "O"):
            raise ValueError("SERIAL_PARITY must be one of N, E, O")
        return v

    @field_validator("serial_stopbits")
    @classmethod
    def serial_stopbits_must_be_valid(cls, v: int) -> int:
        if v not in (1, 2):
            raise ValueError("SERIAL_STOPBITS must be 1 or 2")
        return v

    @field_validator("serial_baudrate")
    @classmethod
    def serial_baudrate_must_be_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("SERIAL_BAUDRATE must be >= 1")
        return v

    @field_validator("serial_timeout_s")
    @classmethod
    def serial_timeout_must_be_positive(cls, v: float) -> float:
        """Validate read timeout; a blocking read would never see shutdown."""
        if v <= 0:
            raise ValueError("SERIAL_TIMEOUT_S must be > 0")
        return v

    @field_validator("tic_separator")
    @classmethod
    def tic_separator_must_be_valid(cls, v: str) -> str:
        v = v.lower()
        if v not in _SEPARATORS:
            raise ValueError("TIC_SEPARATOR must be 'tab' or 'space'")
        return v

    @field_validator("max_frame_size")
    @classmethod
    def max_frame_size_must_be_valid(cls, v: int) -> int:
        """Validate frame size bound is between 64 and 65536 bytes."""
        if v < 64 or v > 65536:
            raise ValueError("MAX_FRAME_SIZE must be >= 64 and <= 65536")
        return v

    @field_validator("mqtt_port")
    @classmethod
    def mqtt_port_must_be_valid(cls, v: int) -> int:
        """Validate MQTT port is in valid range."""
        if v < 1 or v > 65535:
            raise ValueError("MQTT_PORT must be between 1 and 65535")
        return v

    @field_validator("mqtt_qos")
    @classmethod
    def mqtt_qos_must_be_valid(cls, v: int) -> int:
        if v not in (0, 1, 2):
            raise ValueError("MQTT_QOS must be 0, 1 or 2")
        return v

    @field_validator("log_level")
    @classmethod
    def log_level_must_be_valid(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError("LOG_LEVEL must be a standard logging level name")
        return v

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}
