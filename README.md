# meshproto

`meshproto` builds and parses the fixed-size 32-byte packages of a small
mesh protocol. In this protocol, devices form a tree under a hub. Each
package starts with the same header:

| Byte  | Field                                                        |
|-------|--------------------------------------------------------------|
| 0     | protocol version (always `0`)                                |
| 1     | receiver                                                     |
| 2     | last device that handled the message                         |
| 3     | next hop                                                     |
| 4     | group flag (bit 0), group-ascending flag (bit 1), type (bits 2-7) |
| 5     | CRC-8 checksum                                               |
| 6-9   | timestamp, little-endian, which also identifies the message  |
| 10-31 | payload, depending on the message type                       |

The checksum is a CRC-8 with polynomial `0xE7` and initial value `0xFF`.
It covers all 32 bytes, and the checksum byte counts as zero while it is
computed.

Command messages can be larger than a single package. They are split into
numbered packages, and `MessageBuilder` puts them back together on the
receiving side.

## Installation

```
pip install .
```

## Message types

All message classes live in `meshproto.messages` and are dataclasses
derived from `meshproto.packet.Message`.

| Type | Class                     | Purpose                                   |
|------|---------------------------|-------------------------------------------|
| 0    | `CommandMessage`          | a command byte with arbitrary content     |
| 0    | `PartialCommandMessage`   | one received package of a command         |
| 1    | `AcknowledgeMessage`      | acknowledges a message by its timestamp   |
| 2    | `RegisterMessage`         | a device asks to join the network         |
| 3    | `AcceptRejectMessage`     | answer to a registration (`is_accept`)    |
| 4    | `PingMessage`             | ping and ping response                    |
| 5    | `RouteCreationMessage`    | records the route to a new device         |
| 6    | `AddRemoveToGroupMessage` | adds a device to a group or removes it    |

These type numbers are also available as the `MessageType` enum in
`meshproto.packet`.

Every message has the fields `receiver`, `last_device_id`, `next_hop`,
`type_and_groups`, `timestamp` and `version`, and the properties
`is_group` and `is_group_ascending`, which read and set the two flag bits.

Some types behave in particular ways:

- `AcknowledgeMessage` takes no `next_hop` argument. Its next hop is
  always its receiver.
- `PingMessage` takes its `ping_id` from the current time in milliseconds,
  modulo 256, unless one is given. Its `sender_id` defaults to
  `last_device_id`.
- `RouteCreationMessage.to_packages()` writes the route so far and
  appends `last_device_id` as the next hop in the route.

## Usage

Encode a message into packages with `to_packages()`. The method returns a
list of 32-byte `bytes` objects:

```python
from meshproto.messages import CommandMessage, from_raw_bytes
from meshproto.packet import check_checksum

message = CommandMessage(
    receiver=7, last_device_id=1, next_hop=3,
    command=0x42, content=bytes(range(50)),
)
message.timestamp = 123456

packages = message.to_packages()   # three packages for 50 bytes of content
assert all(check_checksum(p) for p in packages)
```

The first package of a command holds the package count, the command and
up to 19 content bytes. Every further package holds its package number
and up to 21 content bytes.

Decode a received package with `from_raw_bytes()`. It returns an instance
of the matching message class. A package of a command message comes back
as a `PartialCommandMessage`:

```python
received = [from_raw_bytes(p) for p in packages]
```

Reassemble a split command with `MessageBuilder` from `meshproto.builder`.
Packages belong to the same command when they share the last device id
and the timestamp. `add()` returns `None` until every package of a message
has arrived, and then returns the complete `CommandMessage`:

```python
from meshproto.builder import MessageBuilder

builder = MessageBuilder()
for part in received:
    complete = builder.add(part)

assert complete.command == 0x42
assert complete.content[:50] == bytes(range(50))
```

The content of a reassembled command is padded to whole packages, so it
can end with trailing zero bytes.

The checksum helpers in `meshproto.packet` work directly on raw 32-byte
packages:

- `compute_checksum(package)` returns the CRC-8.
- `check_checksum(package)` tells whether the checksum byte is correct.
- `with_checksum(package)` returns a copy with the checksum byte filled in.

## Errors

- Every function that takes a raw package raises `ValueError` unless the
  package is exactly 32 bytes long.
- `from_raw_bytes()` raises `ValueError` for an unknown message type.
- `CommandMessage.to_packages()` raises `ValueError` for empty content,
  and for content that would need more than 255 packages.
- `RouteCreationMessage.to_packages()` raises `ValueError` when the route
  already holds 21 hops.
- `PartialCommandMessage.to_packages()` always raises `TypeError`,
  because partial messages are only ever received.

## What the package does not do

`meshproto` only turns messages into bytes and bytes back into messages.
It does not send or receive packages over any radio, serial line or
socket. It does not route or forward messages, keep track of devices or
groups, or send acknowledgements. `MessageBuilder` never discards
incomplete commands.

## Running the tests

```
pip install .[test]
pytest
```