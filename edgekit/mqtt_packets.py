"""Builders for outgoing MQTT control packets.

Every builder returns the finished packet as ``bytes`` and raises
:class:`~edgekit.mqtt_types.MqttError` when the packet cannot be built.
"""

from __future__ import annotations

from typing import Iterable, Optional, Union

from edgekit.mqtt_types import (
    PUBLISH_ID,
    ConnectFlag,
    MqttError,
    PacketType,
    QosLevel,
    encode_remaining_length,
)

__all__ = [
    "connect_packet",
    "disconnect_packet",
    "subscribe_packet",
    "unsubscribe_packet",
    "publish_packet",
    "save_data_packet",
    "save_bin_data_packet",
    "command_response_packet",
    "publish_ack_packet",
    "publish_rec_packet",
    "publish_rel_packet",
    "publish_comp_packet",
    "ping_packet",
]

Text = Union[str, bytes]

_PROTOCOL_NAME = b"MQTT"
_PROTOCOL_LEVEL = 4
_SAVE_DATA_TOPIC_LIMIT = 47  # topic buffer of 48 bytes including the terminator
_BINARY_PAYLOAD_MARK = b"\x02"
_COMMAND_RESPONSE_PREFIX = b"$crsp/"
_BINARY_DATA_TOPIC = b"$dp"


def _to_bytes(value: Optional[Text], what: str) -> bytes:
    if value is None:
        raise MqttError(f"{what} is missing")
    if isinstance(value, str):
        return value.encode("utf-8")
    return bytes(value)


def _field(data: bytes) -> bytes:
    if len(data) > 0xFFFF:
        raise MqttError(f"field of {len(data)} bytes is too long")
    return len(data).to_bytes(2, "big") + data


def _check_packet_id(packet_id: int) -> int:
    if not 0 <= packet_id <= 0xFFFF:
        raise ValueError(f"packet id {packet_id} is out of range")
    return packet_id


def _qos(qos: int) -> QosLevel:
    try:
        return QosLevel(qos)
    except ValueError:
        raise MqttError(f"unsupported QoS level {qos!r}") from None


def _assemble(first_byte: int, remaining_length: int, body: bytes) -> bytes:
    return bytes([first_byte]) + encode_remaining_length(remaining_length) + body


def _short_ack(packet_type: PacketType, packet_id: int, flags: int = 0) -> bytes:
    _check_packet_id(packet_id)
    return bytes([packet_type << 4 | flags, 2]) + packet_id.to_bytes(2, "big")


def connect_packet(
    user: Optional[Text],
    password: Optional[Text],
    device_id: Optional[Text],
    keep_alive: int,
    clean_session: bool = True,
    qos: int = QosLevel.AT_MOST_ONCE,
    will_topic: Optional[Text] = None,
    will_msg: Optional[Text] = None,
    will_retain: bool = False,
) -> bytes:
    """Build a CONNECT packet authenticating with user name and password."""
    device = _to_bytes(device_id, "device id")
    if not 0 <= keep_alive <= 0xFFFF:
        raise ValueError(f"keep alive {keep_alive} is out of range")

    flags = ConnectFlag(0)
    if clean_session:
        flags |= ConnectFlag.CLEAN_SESSION
    if will_topic is not None:
        flags |= ConnectFlag.WILL_FLAG

    level = _qos(qos)
    if level is QosLevel.AT_LEAST_ONCE:
        flags |= ConnectFlag.WILL_FLAG | ConnectFlag.WILL_QOS1
    elif level is QosLevel.EXACTLY_ONCE:
        flags |= ConnectFlag.WILL_FLAG | ConnectFlag.WILL_QOS2

    if will_retain:
        flags |= ConnectFlag.WILL_FLAG | ConnectFlag.WILL_RETAIN

    if user is None or password is None:
        raise MqttError("user name and password are required")
    flags |= ConnectFlag.USER_NAME | ConnectFlag.PASSWORD

    body = bytearray(_field(_PROTOCOL_NAME))
    body.append(_PROTOCOL_LEVEL)
    body.append(int(flags))
    body += keep_alive.to_bytes(2, "big")
    body += _field(device)

    if flags & ConnectFlag.WILL_FLAG:
        if will_topic is None:
            raise MqttError("will flags are set but no will topic was given")
        body += _field(_to_bytes(will_topic, "will topic"))
        body += _field(_to_bytes(will_msg if will_msg is not None else b"", "will message"))

    body += _field(_to_bytes(user, "user name"))
    body += _field(_to_bytes(password, "password"))

    return _assemble(PacketType.CONNECT << 4, len(body), bytes(body))


def disconnect_packet() -> bytes:
    """Build a DISCONNECT packet."""
    return bytes([PacketType.DISCONNECT << 4, 0])


def _topic_list(topics: Iterable[Optional[Text]]) -> list[bytes]:
    encoded = []
    for topic in topics:
        if topic is None:
            raise MqttError("topic is missing")
        encoded.append(_to_bytes(topic, "topic"))
    return encoded


def subscribe_packet(packet_id: int, qos: int, topics: Iterable[Optional[Text]]) -> bytes:
    """Build a SUBSCRIBE packet requesting ``qos`` for every topic."""
    if packet_id == 0:
        raise MqttError("packet id must not be zero")
    _check_packet_id(packet_id)
    encoded = _topic_list(topics)

    body = bytearray(packet_id.to_bytes(2, "big"))
    for topic in encoded:
        body += _field(topic)
        body.append(int(qos) & 0xFF)

    return _assemble(PacketType.SUBSCRIBE << 4 | 0x02, len(body), bytes(body))


def unsubscribe_packet(packet_id: int, topics: Iterable[Optional[Text]]) -> bytes:
    """Build an UNSUBSCRIBE packet for the given topics."""
    if packet_id == 0:
        raise MqttError("packet id must not be zero")
    _check_packet_id(packet_id)
    encoded = _topic_list(topics)

    body = bytearray(packet_id.to_bytes(2, "big"))
    for topic in encoded:
        body += _field(topic)

    return _assemble(PacketType.UNSUBSCRIBE << 4 | 0x02, len(body), bytes(body))


def publish_packet(
    packet_id: int,
    topic: Text,
    payload: Optional[bytes] = None,
    qos: int = QosLevel.AT_MOST_ONCE,
    retain: bool = False,
    payload_length: Optional[int] = None,
) -> bytes:
    """Build a PUBLISH packet.

    ``payload_length`` is the length announced in the header; it defaults to
    the length of ``payload``. When ``payload`` is ``None`` only the header is
    built and the caller sends the announced payload bytes afterwards. A
    payload that starts with byte 2 is a binary-upload header: only the part
    up to the closing brace of its JSON head and the four length bytes after
    it is written, the file data following separately.
    """
    if packet_id == 0:
        raise MqttError("packet id must not be zero")
    _check_packet_id(packet_id)

    topic_bytes = _to_bytes(topic, "topic")
    if b"#" in topic_bytes or b"+" in topic_bytes:
        raise MqttError("publish topic must not contain wildcards")

    if payload_length is None:
        payload_length = len(payload) if payload is not None else 0
    if payload_length < 0:
        raise ValueError("payload length cannot be negative")

    flags = PacketType.PUBLISH << 4
    if retain:
        flags |= 0x01

    remaining = len(topic_bytes) + payload_length + 2
    level = _qos(qos)
    if level is QosLevel.AT_LEAST_ONCE:
        flags |= 0x02
        remaining += 2
    elif level is QosLevel.EXACTLY_ONCE:
        flags |= 0x04
        remaining += 2

    body = bytearray(_field(topic_bytes))
    if level is not QosLevel.AT_MOST_ONCE:
        body += packet_id.to_bytes(2, "big")

    if payload is not None:
        payload = bytes(payload)
        if payload[:1] == _BINARY_PAYLOAD_MARK:
            brace = payload.find(b"}")
            if brace < 0:
                raise MqttError("binary payload head is not terminated")
            written = brace + 5
        else:
            written = payload_length
        if len(payload) < written:
            raise MqttError("payload is shorter than its declared length")
        body += payload[:written]

    return _assemble(flags, remaining, bytes(body))


def save_data_packet(
    product_id: Optional[Text], device_name: Text, payload_length: int
) -> bytes:
    """Build the PUBLISH header for a JSON data-point upload.

    The JSON document of ``payload_length`` bytes is sent after this header.
    """
    product = _to_bytes(product_id, "product id") if product_id is not None else b""
    device = _to_bytes(device_name, "device name")
    topic = (b"$sys/" + product + b"/" + device + b"/dp/post/json")[:_SAVE_DATA_TOPIC_LIMIT]
    return publish_packet(
        PUBLISH_ID,
        topic,
        None,
        QosLevel.AT_LEAST_ONCE,
        False,
        payload_length,
    )


def save_bin_data_packet(name: Text, file_length: int) -> bytes:
    """Build the PUBLISH header for a binary file upload to data stream ``name``.

    The file data of ``file_length`` bytes is sent after this header.
    """
    if not 0 <= file_length <= 0xFFFFFFFF:
        raise ValueError(f"file length {file_length} is out of range")
    head = b'{"ds_id":"' + _to_bytes(name, "data stream name") + b'"}'
    if len(head) > 0xFF:
        raise MqttError("data stream name is too long")
    payload = (
        _BINARY_PAYLOAD_MARK
        + len(head).to_bytes(2, "big")
        + head
        + file_length.to_bytes(4, "big")
    )
    return publish_packet(
        PUBLISH_ID,
        _BINARY_DATA_TOPIC,
        payload,
        QosLevel.AT_LEAST_ONCE,
        False,
        len(payload) + file_length,
    )


def command_response_packet(cmd_id: Text, response: Text) -> bytes:
    """Build the PUBLISH packet answering the command ``cmd_id``."""
    topic = _COMMAND_RESPONSE_PREFIX + _to_bytes(cmd_id, "command id")
    body = _to_bytes(response, "response")
    return publish_packet(
        PUBLISH_ID,
        topic,
        body,
        QosLevel.AT_MOST_ONCE,
        False,
        len(body),
    )


def publish_ack_packet(packet_id: int) -> bytes:
    """Build a PUBACK packet."""
    return _short_ack(PacketType.PUBACK, packet_id)


def publish_rec_packet(packet_id: int) -> bytes:
    """Build a PUBREC packet."""
    return _short_ack(PacketType.PUBREC, packet_id)


def publish_rel_packet(packet_id: int) -> bytes:
    """Build a PUBREL packet."""
    return _short_ack(PacketType.PUBREL, packet_id, 0x02)


def publish_comp_packet(packet_id: int) -> bytes:
    """Build a PUBCOMP packet."""
    return _short_ack(PacketType.PUBCOMP, packet_id)


def ping_packet() -> bytes:
    """Build a PINGREQ packet."""
    return bytes([PacketType.PINGREQ << 4, 0])