"""Parsers for incoming MQTT control packets.

Parsers raise :class:`~edgekit.mqtt_types.MqttError` when a packet is
malformed. The ``*_ok`` helpers answer whether an acknowledgement matches
the packet it is expected to confirm.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Union

from edgekit.mqtt_types import (
    CMD_TOPIC_PREFIX,
    PUBLISH_ID,
    SUBSCRIBE_ID,
    UNSUBSCRIBE_ID,
    MqttError,
    PacketType,
    QosLevel,
    decode_remaining_length,
)

__all__ = [
    "Command",
    "PublishMessage",
    "classify_packet",
    "parse_connect_ack",
    "parse_command",
    "parse_subscribe_ack",
    "unsubscribe_ack_ok",
    "parse_publish",
    "publish_ack_ok",
    "publish_rec_ok",
    "publish_rel_ok",
    "publish_comp_ok",
]

_CMD_ID_LENGTH = 36
_SUBACK_FAILURE = 0x80


@dataclass(frozen=True)
class Command:
    """A command pushed by the platform on a ``$creq/<cmd_id>`` topic."""

    cmd_id: str
    request: bytes


@dataclass(frozen=True)
class PublishMessage:
    """An application message received in a PUBLISH packet."""

    topic: str
    payload: bytes
    qos: QosLevel
    packet_id: Optional[int] = None


@dataclass(frozen=True)
class _PublishHead:
    flags: int
    remaining: int
    body_start: int
    topic: bytes

    @property
    def after_topic(self) -> int:
        return self.body_start + 2 + len(self.topic)

    @property
    def end(self) -> int:
        return self.body_start + self.remaining


def _publish_head(data: bytes) -> _PublishHead:
    if not data:
        raise MqttError("packet is empty")
    flags = data[0] & 0x0F
    remaining, used = decode_remaining_length(data[1:5])
    start = 1 + used
    if remaining < 2:
        raise MqttError("publish packet is too short")
    if flags & 0x01:
        raise MqttError("retained publish packets are not accepted")
    if len(data) < start + 2:
        raise MqttError("publish packet is truncated")
    topic_len = int.from_bytes(data[start:start + 2], "big")
    if remaining < topic_len + 2:
        raise MqttError("topic length exceeds the remaining length")
    topic = bytes(data[start + 2:start + 2 + topic_len])
    if len(topic) < topic_len:
        raise MqttError("publish packet is truncated")
    return _PublishHead(flags, remaining, start, topic)


def _decode_text(raw: bytes, what: str) -> str:
    try:
        return raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise MqttError(f"{what} is not valid UTF-8") from exc


def _require_complete(data: bytes, head: _PublishHead) -> None:
    if len(data) < head.end:
        raise MqttError("publish packet is truncated")


def classify_packet(data: bytes) -> PacketType:
    """Return the kind of a received packet, telling commands apart from publishes."""
    if not data:
        raise MqttError("packet is empty")
    kind = data[0] >> 4
    if not PacketType.CONNECT <= kind <= PacketType.DISCONNECT:
        raise MqttError(f"unknown packet type {kind}")
    if kind == PacketType.PUBLISH:
        head = _publish_head(data)
        return PacketType.CMD if CMD_TOPIC_PREFIX in head.topic else PacketType.PUBLISH
    return PacketType(kind)


def parse_connect_ack(data: bytes) -> int:
    """Return the return code of a CONNACK packet; zero means accepted."""
    if len(data) < 4 or data[1] != 2:
        raise MqttError("malformed CONNACK packet")
    if data[2] not in (0, 1):
        raise MqttError(f"invalid CONNACK acknowledge flags {data[2]:#04x}")
    return data[3]


def parse_command(data: bytes) -> Command:
    """Extract the command id and request body from a command PUBLISH."""
    head = _publish_head(data)
    _, slash, rest = head.topic.partition(b"/")
    if not slash:
        raise MqttError("command topic has no '/'")
    _require_complete(data, head)
    cmd_id = _decode_text(rest[:_CMD_ID_LENGTH], "command id")
    return Command(cmd_id, bytes(data[head.after_topic:head.end]))


def parse_subscribe_ack(data: bytes) -> QosLevel:
    """Return the QoS granted by a SUBACK answering our subscription."""
    if len(data) < 5:
        raise MqttError("malformed SUBACK packet")
    if int.from_bytes(data[2:4], "big") != SUBSCRIBE_ID:
        raise MqttError("SUBACK answers a different packet id")
    code = data[4]
    if code == _SUBACK_FAILURE:
        raise MqttError("subscription rejected")
    try:
        return QosLevel(code)
    except ValueError:
        raise MqttError(f"unknown SUBACK return code {code:#04x}") from None


def unsubscribe_ack_ok(data: bytes) -> bool:
    """Tell whether an UNSUBACK confirms our unsubscription."""
    return len(data) >= 4 and int.from_bytes(data[2:4], "big") == UNSUBSCRIBE_ID


def parse_publish(data: bytes) -> Union[PublishMessage, Command]:
    """Parse a received PUBLISH packet.

    A packet on a command topic is returned as a :class:`Command`.
    """
    head = _publish_head(data)
    if CMD_TOPIC_PREFIX in head.topic:
        return parse_command(data)

    flags = head.flags
    try:
        qos = QosLevel((flags & 0x06) >> 1)
    except ValueError:
        raise MqttError("invalid QoS level in publish packet") from None

    _require_complete(data, head)
    packet_id: Optional[int] = None
    if qos is QosLevel.AT_MOST_ONCE:
        if flags & 0x08:
            raise MqttError("QoS 0 publish must not carry the DUP flag")
        payload_start = head.after_topic
    else:
        if head.remaining < len(head.topic) + 4:
            raise MqttError("publish packet lacks a packet id")
        packet_id = int.from_bytes(data[head.after_topic:head.after_topic + 2], "big")
        if packet_id == 0:
            raise MqttError("packet id must not be zero")
        payload_start = head.after_topic + 2

    if b"+" in head.topic or b"#" in head.topic:
        raise MqttError("publish topic must not contain wildcards")

    return PublishMessage(
        topic=_decode_text(head.topic, "topic"),
        payload=bytes(data[payload_start:head.end]),
        qos=qos,
        packet_id=packet_id,
    )


def _ack_matches(data: bytes, packet_id: int) -> bool:
    return len(data) >= 4 and data[1] == 2 and int.from_bytes(data[2:4], "big") == packet_id


def publish_ack_ok(data: bytes) -> bool:
    """Tell whether a PUBACK confirms our publish."""
    return _ack_matches(data, PUBLISH_ID)


def publish_rec_ok(data: bytes) -> bool:
    """Tell whether a PUBREC confirms our publish."""
    return _ack_matches(data, PUBLISH_ID)


def publish_rel_ok(data: bytes, packet_id: int) -> bool:
    """Tell whether a PUBREL releases the message with ``packet_id``."""
    return _ack_matches(data, packet_id)


def publish_comp_ok(data: bytes) -> bool:
    """Tell whether a PUBCOMP completes our publish."""
    return _ack_matches(data, PUBLISH_ID)