"""
Edge daemon package for the Teleinfo-to-MQTT bridge.

Reads the historical-mode TIC output of an electricity meter over a serial
port, decodes it into checksum-validated records, and publishes them to an
MQTT broker.

CHANGELOG:
- 2026-10-18: Initial creation

TODO:
- None
"""
