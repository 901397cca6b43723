# edgekit

Small, dependency-free building blocks for edge devices that talk to an
IoT platform over MQTT 3.1.1:

- **MQTT packets** (`edgekit.mqtt_packets`) – build CONNECT, PUBLISH,
  SUBSCRIBE, UNSUBSCRIBE, PUBACK/PUBREC/PUBREL/PUBCOMP, PINGREQ and
  DISCONNECT packets as `bytes`, with helpers for OneNET-style data-point
  uploads (`$sys/<product>/<device>/dp/post/json`), binary uploads to `$dp`
  and command responses (`$crsp/<cmd_id>`).
- **MQTT parsing** (`edgekit.mqtt_parse`) – classify incoming packets, decode
  CONNACK, SUBACK, PUBLISH and platform commands published on
  `$creq/<cmd_id>` topics, and check UNSUBACK and the QoS acknowledgements.
- **Shared types** (`edgekit.mqtt_types`) – `PacketType`, `QosLevel`,
  `ConnectFlag`, `MqttError` and the remaining-length coding.
- **Half-precision floats** (`edgekit.float16`) – `Float16` (IEEE 754
  binary16) and `BFloat16` values kept as 16-bit patterns.

## Installation

```
pip install edgekit
```

For running the test suite:

```
pip install "edgekit[test]"
pytest
```

## Building packets

```python
from edgekit.mqtt_types import QosLevel
from edgekit.mqtt_packets import (
    connect_packet, subscribe_packet, publish_packet, ping_packet,
    save_data_packet, command_response_packet,
)

password = "password"
packet = connect_packet(
    user="product-id",
    password=password,
    device_id="device-01",
    keep_alive=256,
    clean_session=True,
    qos=QosLevel.AT_MOST_ONCE,
    will_topic=None,
    will_msg=None,
    will_retain=False,
)

sub = subscribe_packet(20, QosLevel.AT_MOST_ONCE, ["$sys/product-id/device-01/dp/post/json/+"])
pub = publish_packet(10, "sensors/temperature", b'{"t": 21.5}', QosLevel.AT_LEAST_ONCE, False)
ping = ping_packet()
```

`publish_packet` refuses topics containing `#` or `+`. When its `payload`
is `None` only the header is built, announcing `payload_length` bytes that
the caller sends afterwards; `save_data_packet(product_id, device_name,
payload_length)` and `save_bin_data_packet(name, file_length)` work that way.
`command_response_packet(cmd_id, response)` publishes the response on
`$crsp/<cmd_id>` at QoS 0.

## Parsing packets

```python
from edgekit.mqtt_types import PacketType
from edgekit.mqtt_parse import classify_packet, parse_connect_ack, parse_publish, parse_command

kind = classify_packet(received)
if kind == PacketType.CONNACK:
    code = parse_connect_ack(received)   # 0 means accepted
elif kind == PacketType.CMD:
    command = parse_command(received)
    print(command.cmd_id, command.request)
elif kind == PacketType.PUBLISH:
    message = parse_publish(received)
    print(message.topic, message.payload, message.qos, message.packet_id)
```

`classify_packet` returns `PacketType.CMD` for publishes on a `$creq` topic.
`parse_subscribe_ack` returns the granted `QosLevel` for a SUBACK answering
packet id 20. `unsubscribe_ack_ok`, `publish_ack_ok`, `publish_rec_ok`,
`publish_comp_ok` and `publish_rel_ok(data, packet_id)` return `True` or
`False`. Retained publishes are rejected.

Malformed input and invalid arguments raise `edgekit.mqtt_types.MqttError`
(out-of-range numbers such as packet ids raise `ValueError`). The
remaining-length field is available on its own through
`encode_remaining_length` and `decode_remaining_length`, the latter returning
`(length, bytes_consumed)`.

## Float16 and BFloat16

```python
from edgekit.float16 import Float16, BFloat16

h = Float16.from_float(1.0)
assert h.bits == 0x3C00
assert h.to_float() == 1.0

b = BFloat16.from_float(-2.0)
assert b.is_negative()
assert b.abs().to_float() == 2.0
```

Conversion from floats rounds to nearest even. Both types offer `from_bits`,
`is_nan`, `is_finite`, `is_infinity`, `is_positive_infinity`,
`is_negative_infinity`, `is_nan_or_zero`, `is_normal`, `is_subnormal`,
`abs`, `negate` (NaN is returned unchanged) and `are_zero`, which treats `+0`
and `-0` alike.

`Float16` equality compares bit patterns, except that NaN is unequal to
everything; `<` orders values the IEEE way, with NaN unordered and `+0` not
less than `-0`. `BFloat16` equality compares bit patterns only and defines no
ordering.

## What it does not do

edgekit only builds and parses bytes. It opens no connections, keeps no
session state, sends no keep-alive pings on its own and retries nothing;
the application owns the socket and the protocol flow.