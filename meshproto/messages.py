"""Concrete message types and decoding of received packages."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from itertools import takewhile

from .packet import (
    PACKAGE_SIZE,
    PAYLOAD_OFFSET,
    Message,
    MessageType,
    _decode_header,
    with_checksum,
)

FIRST_PACKAGE_CAPACITY = 19
FOLLOWING_PACKAGE_CAPACITY = 21
MAX_PACKAGES = 255
ROUTE_CAPACITY = 21

_PART_CONTENT_OFFSET = PAYLOAD_OFFSET + 1
_FIRST_CONTENT_OFFSET = PAYLOAD_OFFSET + 3


def _current_ping_id() -> int:
    """Derive a ping id from the current wall-clock time in milliseconds."""
    return (time.time_ns() // 1_000_000) % 256


@dataclass
class CommandMessage(Message):
    """A command with its parameters, split over one or more packages."""

    message_type = MessageType.COMMAND

    command: int = 0
    content: bytes = b""

    def __post_init__(self) -> None:
        self.content = bytes(self.content)

    def to_packages(self) -> list[bytes]:
        """Split the command into packages.

        The first package holds the package count, the command and up to
        19 content bytes; every further package holds its number and up to
        21 content bytes.
        """
        content = bytes(self.content)
        if not content:
            raise ValueError("a command message needs at least one content byte")
        count = (len(content) + 1) // FOLLOWING_PACKAGE_CAPACITY + 1
        if count > MAX_PACKAGES:
            raise ValueError(
                f"content of {len(content)} bytes needs more than {MAX_PACKAGES} packages"
            )

        header = self._header()

        first = bytearray(header)
        first[PAYLOAD_OFFSET] = 0
        first[PAYLOAD_OFFSET + 1] = count
        first[PAYLOAD_OFFSET + 2] = self.command
        chunk = content[:FIRST_PACKAGE_CAPACITY]
        first[_FIRST_CONTENT_OFFSET:_FIRST_CONTENT_OFFSET + len(chunk)] = chunk
        packages = [with_checksum(first)]

        for number in range(1, count):
            start = FIRST_PACKAGE_CAPACITY + FOLLOWING_PACKAGE_CAPACITY * (number - 1)
            chunk = content[start:start + FOLLOWING_PACKAGE_CAPACITY]
            package = bytearray(PACKAGE_SIZE)
            package[:PAYLOAD_OFFSET] = header[:PAYLOAD_OFFSET]
            package[PAYLOAD_OFFSET] = number
            package[_PART_CONTENT_OFFSET:_PART_CONTENT_OFFSET + len(chunk)] = chunk
            packages.append(with_checksum(package))
        return packages


@dataclass
class PartialCommandMessage(Message):
    """One received package of a command message.

    For package number 0 the content starts with the package count and the
    command byte.
    """

    message_type = MessageType.COMMAND

    package_number: int = 0
    content: bytes = b""

    def __post_init__(self) -> None:
        self.content = bytes(self.content)

    def to_packages(self) -> list[bytes]:
        """Partial messages are only ever received; encoding one is an error."""
        raise TypeError("a partial command message cannot be encoded")


@dataclass
class AcknowledgeMessage(Message):
    """Acknowledges a message; the receiver is always the next hop."""

    message_type = MessageType.ACKNOWLEDGE

    next_hop: int = field(default=0, init=False)

    def __post_init__(self) -> None:
        self.next_hop = self.receiver

    def to_packages(self) -> list[bytes]:
        """Encode the acknowledgement as a single package."""
        return [with_checksum(self._header())]


@dataclass
class RegisterMessage(Message):
    """Request of a new device to join the network."""

    message_type = MessageType.REGISTER

    def to_packages(self) -> list[bytes]:
        """Encode the registration as a single package."""
        return [with_checksum(self._header())]


@dataclass
class AcceptRejectMessage(Message):
    """Answer to a registration: accepted or rejected."""

    message_type = MessageType.ACCEPT_REJECT

    is_accept: bool = False

    def to_packages(self) -> list[bytes]:
        """Encode the answer as a single package."""
        package = self._header()
        package[PAYLOAD_OFFSET] = int(bool(self.is_accept))
        return [with_checksum(package)]


@dataclass
class PingMessage(Message):
    """A ping or the response to one.

    A new ping takes its id from the current time and its sender from the
    last device id unless they are given.
    """

    message_type = MessageType.PING

    ping_id: int = field(default_factory=_current_ping_id)
    sender_id: int | None = None
    is_response: bool = False

    def __post_init__(self) -> None:
        if self.sender_id is None:
            self.sender_id = self.last_device_id

    def to_packages(self) -> list[bytes]:
        """Encode the ping as a single package."""
        package = self._header()
        package[PAYLOAD_OFFSET] = self.ping_id
        package[PAYLOAD_OFFSET + 1] = self.sender_id
        package[PAYLOAD_OFFSET + 2] = int(bool(self.is_response))
        return [with_checksum(package)]


@dataclass
class RouteCreationMessage(Message):
    """Records the route to a new device, one hop per forwarding device."""

    message_type = MessageType.ROUTE_CREATION

    new_id: int = 0
    route: list[int] = field(default_factory=list)

    def __post_init__(self) -> None:
        self.route = list(self.route)

    def to_packages(self) -> list[bytes]:
        """Encode the route so far with this device appended as the next hop."""
        hops = list(takewhile(lambda hop: hop != 0, self.route[:ROUTE_CAPACITY]))
        if len(hops) >= ROUTE_CAPACITY:
            raise ValueError(f"a route holds at most {ROUTE_CAPACITY} hops")
        package = self._header()
        package[PAYLOAD_OFFSET] = self.new_id
        end = _PART_CONTENT_OFFSET + len(hops)
        package[_PART_CONTENT_OFFSET:end] = bytes(hops)
        package[end] = self.last_device_id
        return [with_checksum(package)]


@dataclass
class AddRemoveToGroupMessage(Message):
    """Adds a device to a group or removes it from one."""

    message_type = MessageType.ADD_REMOVE_TO_GROUP

    group_id: int = 0
    is_add_to_group: bool = False

    def to_packages(self) -> list[bytes]:
        """Encode the group change as a single package."""
        package = self._header()
        package[PAYLOAD_OFFSET] = self.group_id
        package[PAYLOAD_OFFSET + 1] = int(bool(self.is_add_to_group))
        return [with_checksum(package)]


def from_raw_bytes(package: bytes | bytearray) -> Message:
    """Decode a received 32-byte package into its message object.

    Raises ValueError for a package of the wrong size or of an unknown type.
    """
    header = _decode_header(package)
    data = bytes(package)
    receiver = header["receiver"]
    last_device_id = header["last_device_id"]
    next_hop = header["next_hop"]
    type_and_groups = header["type_and_groups"]
    payload = data[PAYLOAD_OFFSET]

    try:
        message_type = MessageType(type_and_groups >> 2)
    except ValueError:
        raise ValueError(f"unknown message type {type_and_groups >> 2}") from None

    if message_type is MessageType.COMMAND:
        return PartialCommandMessage(
            receiver,
            last_device_id,
            next_hop,
            type_and_groups,
            timestamp=header["timestamp"],
            package_number=payload,
            content=data[_PART_CONTENT_OFFSET:],
        )
    if message_type is MessageType.ACKNOWLEDGE:
        return AcknowledgeMessage(
            receiver, last_device_id, type_and_groups, timestamp=header["timestamp"]
        )
    if message_type is MessageType.REGISTER:
        return RegisterMessage(receiver, last_device_id, next_hop, type_and_groups)
    if message_type is MessageType.ACCEPT_REJECT:
        return AcceptRejectMessage(
            receiver, last_device_id, next_hop, type_and_groups, is_accept=bool(payload)
        )
    if message_type is MessageType.PING:
        return PingMessage(
            receiver,
            last_device_id,
            next_hop,
            type_and_groups,
            ping_id=payload,
            sender_id=data[PAYLOAD_OFFSET + 1],
            is_response=bool(data[PAYLOAD_OFFSET + 2]),
        )
    if message_type is MessageType.ROUTE_CREATION:
        route = list(takewhile(lambda hop: hop != 0, data[_PART_CONTENT_OFFSET:]))
        return RouteCreationMessage(
            receiver, last_device_id, next_hop, type_and_groups, new_id=payload, route=route
        )
    return AddRemoveToGroupMessage(
        receiver,
        last_device_id,
        next_hop,
        type_and_groups,
        group_id=payload,
        is_add_to_group=bool(data[PAYLOAD_OFFSET + 1]),
    )


__all__ = [
    "AcceptRejectMessage",
    "AcknowledgeMessage",
    "AddRemoveToGroupMessage",
    "CommandMessage",
    "PartialCommandMessage",
    "PingMessage",
    "RegisterMessage",
    "RouteCreationMessage",
    "from_raw_bytes",
]