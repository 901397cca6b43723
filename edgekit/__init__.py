"""MQTT packet building and parsing for IoT devices, and 16-bit float types."""

__version__ = "0.1.0"
__all__ = ["mqtt_types", "mqtt_packets", "mqtt_parse", "float16"]