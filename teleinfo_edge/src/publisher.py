"""
MQTT publisher for decoded Teleinfo records.

Publishes each :class:`~teleinfo_edge.src.models.TeleinfoRecord` as JSON on
``<topic_prefix>/<ADCO>``.  The paho network loop runs in its own thread
(``loop_start``) and reconnects on its own after a broker outage; while the
client is disconnected, publish calls fail fast and are reported as ``False``.

Operations:
- connect(): Open the broker connection and start the network loop.
- publish(record): Publish one record, return True on success.
- disconnect(): Stop the loop and close the connection.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

import paho.mqtt.client as mqtt

if TYPE_CHECKING:
    from teleinfo_edge.src.models import TeleinfoRecord

logger = logging.getLogger(__name__)

_KEEPALIVE_S = 60


class MqttPublisher:
    """Publishes Teleinfo records to an MQTT broker.

    Args:
        host: Broker hostname.
        port: Broker port (default 1883).
        client_id: MQTT client identifier.
        topic_prefix: Topic prefix; records go to ``<prefix>/<adco>``.
        qos: Quality of service for record messages.
        retain: Whether record messages are retained by the broker.
        username: Optional broker username.
        password: Optional broker password.
        client: Pre-built paho client (tests inject a mock here).
    """

    def __init__(
        self,
        *,
        host: str,
        port: int = 1883,
        client_id: str = "teleinfo-edge",
        topic_prefix: str = "teleinfo",
        qos: int = 0,
        retain: bool = False,
        username: str | None = None,
        password: str | None = None,
        client: mqtt.Client | None = None,
    ) -> None:
        self._host = host
        self._port = port
        self._topic_prefix = topic_prefix.rstrip("/")
        self._qos = qos
        self._retain = retain
        if client is None:
            client = mqtt.Client(mqtt.CallbackAPIVersion.VERSION2, client_id=client_id)
        if username:
            client.username_pw_set(username, password)
        client.on_connect = self._on_connect
        client.on_disconnect = self._on_disconnect
        self._client = client

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def topic_for(self, record: TeleinfoRecord) -> str:
        """Return the topic a record is published on."""
        return f"{self._topic_prefix}/{record.adco}"

    def connect(self) -> None:
        """Connect to the broker and start the background network loop.

        ``connect_async`` lets the loop keep retrying when the broker is not
        reachable yet, so startup never blocks on the broker.
        """
        logger.info("Connecting to MQTT broker %s:%d", self._host, self._port)
        self._client.connect_async(self._host, self._port, keepalive=_KEEPALIVE_S)
        self._client.loop_start()

    def publish(self, record: TeleinfoRecord) -> bool:
        """Publish one record.

        Returns:
            ``True`` if paho accepted the message, ``False`` otherwise.
        """
        topic = self.topic_for(record)
        info = self._client.publish(
            topic,
            record.model_dump_json(),
            qos=self._qos,
            retain=self._retain,
        )
        if info.rc != mqtt.MQTT_ERR_SUCCESS:
            logger.warning(
                "Publish to %s failed: %s",
                topic,
                mqtt.error_string(info.rc),
            )
            return False
        logger.debug("Published record on %s", topic)
        return True

    def disconnect(self) -> None:
        """Disconnect from the broker and stop the network loop."""
        self._client.disconnect()
        self._client.loop_stop()
        logger.info("Disconnected from MQTT broker")

    # ------------------------------------------------------------------
    # paho callbacks
    # ------------------------------------------------------------------

    def _on_connect(self, client, userdata, flags, reason_code, properties) -> None:  # noqa: ANN001
        if reason_code.is_failure:
            logger.warning("MQTT connection refused: %s", reason_code)
        else:
            logger.info("Connected to MQTT broker %s:%d", self._host, self._port)

    def _on_disconnect(self, client, userdata, flags, reason_code, properties) -> None:  # noqa: ANN001
        logger.warning("Disconnected from MQTT broker: %s", reason_code)
