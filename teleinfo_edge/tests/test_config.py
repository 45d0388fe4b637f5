"""
Unit tests for edge daemon configuration (TeleinfoSettings).

Tests verify:
- Config loads from environment variables with correct defaults.
- Config validation rejects missing required variables.
- Serial line settings, separator, frame size, MQTT port and QoS are
  validated.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

import pytest
from pydantic import ValidationError
from teleinfo_edge.src.config import TeleinfoSettings


class TestTeleinfoSettingsLoadsFromEnv:
    """Config loads all values from environment variables."""

    def test_loads_all_env_vars(self, env_vars_full: dict[str, str]) -> None:
        """All env vars are read and assigned correctly."""
        settings = TeleinfoSettings()

        assert settings.serial_device == env_vars_full["SERIAL_DEVICE"]
        assert settings.serial_baudrate == 9600
        assert settings.serial_bytesize == 8
        assert settings.serial_parity == "E"
        assert settings.serial_stopbits == 2
        assert settings.serial_timeout_s == 0.5
        assert settings.tic_separator == "space"
        assert settings.separator == " "
        assert settings.max_frame_size == 2048
        assert settings.mqtt_host == env_vars_full["MQTT_HOST"]
        assert settings.mqtt_port == 8883
        assert settings.mqtt_client_id == env_vars_full["MQTT_CLIENT_ID"]
        assert settings.mqtt_username == env_vars_full["MQTT_USERNAME"]
        assert settings.mqtt_password == env_vars_full["MQTT_PASSWORD"]
        assert settings.mqtt_topic_prefix == env_vars_full["MQTT_TOPIC_PREFIX"]
        assert settings.mqtt_qos == 1
        assert settings.mqtt_retain is True
        assert settings.health_path == env_vars_full["HEALTH_PATH"]
        assert settings.log_level == "DEBUG"

    def test_defaults_applied_when_optional_vars_missing(
        self, env_vars_required_only: dict[str, str]
    ) -> None:
        """Optional variables use default values when not set."""
        settings = TeleinfoSettings()

        assert settings.serial_device == env_vars_required_only["SERIAL_DEVICE"]
        assert settings.mqtt_host == env_vars_required_only["MQTT_HOST"]
        assert settings.serial_baudrate == 1200
        assert settings.serial_bytesize == 7
        assert settings.serial_parity == "N"
        assert settings.serial_stopbits == 1
        assert settings.serial_timeout_s == 1.0
        assert settings.tic_separator == "tab"
        assert settings.separator == "\t"
        assert settings.max_frame_size == 1024
        assert settings.mqtt_port == 1883
        assert settings.mqtt_client_id == "teleinfo-edge"
        assert settings.mqtt_username is None
        assert settings.mqtt_password is None
        assert settings.mqtt_topic_prefix == "teleinfo"
        assert settings.mqtt_qos == 0
        assert settings.mqtt_retain is False
        assert settings.health_path == "/data/health.json"
        assert settings.log_level == "INFO"


class TestRequiredVariables:
    """Missing required variables fail at startup."""

    @pytest.mark.parametrize("missing", ["SERIAL_DEVICE", "MQTT_HOST"])
    def test_missing_required_var(
        self,
        missing: str,
        env_vars_required_only: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.delenv(missing)
        with pytest.raises(ValidationError):
            TeleinfoSettings()


class TestValidation:
    """Out-of-range values are rejected; case is normalised."""

    @pytest.mark.parametrize(
        ("var", "value"),
        [
            ("SERIAL_BYTESIZE", "6"),
            ("SERIAL_PARITY", "X"),
            ("SERIAL_STOPBITS", "3"),
            ("SERIAL_BAUDRATE", "0"),
            ("SERIAL_TIMEOUT_S", "0"),
            ("TIC_SEPARATOR", "comma"),
            ("MAX_FRAME_SIZE", "10"),
            ("MAX_FRAME_SIZE", "100000"),
            ("MQTT_PORT", "0"),
            ("MQTT_PORT", "70000"),
            ("MQTT_QOS", "3"),
            ("LOG_LEVEL", "VERBOSE"),
        ],
    )
    def test_rejects_invalid_value(
        self,
        var: str,
        value: str,
        env_vars_required_only: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv(var, value)
        with pytest.raises(ValidationError):
            TeleinfoSettings()

    def test_parity_and_level_case_normalised(
        self,
        env_vars_required_only: dict[str, str],
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("SERIAL_PARITY", "e")
        monkeypatch.setenv("LOG_LEVEL", "warning")
        monkeypatch.setenv("TIC_SEPARATOR", "SPACE")

        settings = TeleinfoSettings()

        assert settings.serial_parity == "E"
        assert settings.log_level == "WARNING"
        assert settings.separator == " "
