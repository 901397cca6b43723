"""Shared MQTT types: packet kinds, QoS levels, connect flags and length coding."""

from __future__ import annotations

import enum

__all__ = [
    "MqttError",
    "PacketType",
    "QosLevel",
    "ConnectFlag",
    "PUBLISH_ID",
    "SUBSCRIBE_ID",
    "UNSUBSCRIBE_ID",
    "CMD_TOPIC_PREFIX",
    "MAX_REMAINING_LENGTH",
    "encode_remaining_length",
    "decode_remaining_length",
]

PUBLISH_ID = 10
SUBSCRIBE_ID = 20
UNSUBSCRIBE_ID = 30

CMD_TOPIC_PREFIX = b"$creq"

MAX_REMAINING_LENGTH = 128**4 - 1

# A decoder accepts at most three length bytes before the multiplier overflows.
_DECODE_MULTIPLIER_LIMIT = 2097152


class MqttError(Exception):
    """Raised when a packet cannot be built or parsed."""


class PacketType(enum.IntEnum):
    """Control packet types carried in the high nibble of the first byte."""

    CONNECT = 1
    CONNACK = 2
    PUBLISH = 3
    PUBACK = 4
    PUBREC = 5
    PUBREL = 6
    PUBCOMP = 7
    SUBSCRIBE = 8
    SUBACK = 9
    UNSUBSCRIBE = 10
    UNSUBACK = 11
    PINGREQ = 12
    PINGRESP = 13
    DISCONNECT = 14
    CMD = 15


class QosLevel(enum.IntEnum):
    """Delivery guarantee for published messages."""

    AT_MOST_ONCE = 0
    AT_LEAST_ONCE = 1
    EXACTLY_ONCE = 2


class ConnectFlag(enum.IntFlag):
    """Bits of the CONNECT variable header flags byte."""

    WILL_QOS0 = 0x00
    CLEAN_SESSION = 0x02
    WILL_FLAG = 0x04
    WILL_QOS1 = 0x08
    WILL_QOS2 = 0x10
    WILL_RETAIN = 0x20
    PASSWORD = 0x40
    USER_NAME = 0x80


def encode_remaining_length(length: int) -> bytes:
    """Encode a remaining length as 1 to 4 variable-length bytes."""
    if length < 0:
        raise ValueError("remaining length cannot be negative")
    if length > MAX_REMAINING_LENGTH:
        raise MqttError(f"remaining length {length} does not fit in four bytes")
    out = bytearray()
    while True:
        byte = length % 128
        length >>= 7
        if length:
            out.append(byte | 0x80)
        else:
            out.append(byte)
            return bytes(out)


def decode_remaining_length(data: bytes) -> tuple[int, int]:
    """Decode a remaining length from the start of ``data``.

    Returns ``(length, bytes_consumed)``. Raises :class:`MqttError` if the
    encoding is incomplete or runs past the supported range.
    """
    value = 0
    multiplier = 1
    for consumed, byte in enumerate(data, start=1):
        value += (byte & 0x7F) * multiplier
        if not byte & 0x80:
            return value, consumed
        multiplier <<= 7
        if multiplier >= _DECODE_MULTIPLIER_LIMIT:
            raise MqttError("remaining length out of range")
    raise MqttError("remaining length is incomplete")