"""Fixed-size wire packages: header layout, checksum and the base message."""

from __future__ import annotations

import enum
import struct
from dataclasses import dataclass
from typing import ClassVar

PROTOCOL_VERSION = 0
PACKAGE_SIZE = 32
CHECKSUM_INDEX = 5
TIMESTAMP_OFFSET = 6
PAYLOAD_OFFSET = 10
CRC_POLY = 0xE7

_GROUP_BIT = 0x01
_GROUP_ASCENDING_BIT = 0x02
_TYPE_SHIFT = 2

# version, receiver, last device, next hop, type and groups, checksum, timestamp
_HEADER = struct.Struct("<BBBBBBI")


class MessageType(enum.IntEnum):
    """Message types carried in the upper six bits of the type byte."""

    COMMAND = 0
    ACKNOWLEDGE = 1
    REGISTER = 2
    ACCEPT_REJECT = 3
    PING = 4
    ROUTE_CREATION = 5
    ADD_REMOVE_TO_GROUP = 6


def _validated(package: bytes | bytearray) -> bytes:
    data = bytes(package)
    if len(data) != PACKAGE_SIZE:
        raise ValueError(
            f"a package must be {PACKAGE_SIZE} bytes long, got {len(data)}"
        )
    return data


def compute_checksum(package: bytes | bytearray) -> int:
    """Return the CRC-8 of a package, treating the checksum byte as zero."""
    data = _validated(package)
    crc = 0xFF
    for index, byte in enumerate(data):
        if index == CHECKSUM_INDEX:
            byte = 0
        for shift in range(7, -1, -1):
            feedback = crc & 0x80
            crc = ((crc << 1) | ((byte >> shift) & 1)) & 0xFF
            if feedback:
                crc ^= CRC_POLY
    return crc


def check_checksum(package: bytes | bytearray) -> bool:
    """Return True if the checksum byte of the package is correct."""
    data = _validated(package)
    return data[CHECKSUM_INDEX] == compute_checksum(data)


def with_checksum(package: bytes | bytearray) -> bytes:
    """Return a copy of the package with its checksum byte filled in."""
    data = bytearray(_validated(package))
    data[CHECKSUM_INDEX] = compute_checksum(data)
    return bytes(data)


def _decode_header(package: bytes | bytearray) -> dict:
    """Read the common header fields of a package."""
    data = _validated(package)
    version, receiver, last_device_id, next_hop, type_and_groups, _, timestamp = (
        _HEADER.unpack_from(data)
    )
    return {
        "version": version,
        "receiver": receiver,
        "last_device_id": last_device_id,
        "next_hop": next_hop,
        "type_and_groups": type_and_groups,
        "timestamp": timestamp,
    }


@dataclass
class Message:
    """Common fields of every message.

    ``type_and_groups`` holds the group flag (bit 0), the group-ascending
    flag (bit 1) and the message type (bits 2-7).
    """

    message_type: ClassVar[MessageType] = MessageType.COMMAND

    receiver: int
    last_device_id: int
    next_hop: int
    type_and_groups: int = 0
    timestamp: int = 0
    version: int = PROTOCOL_VERSION

    @property
    def is_group(self) -> bool:
        """True if the message is addressed to a group."""
        return bool(self.type_and_groups & _GROUP_BIT)

    @is_group.setter
    def is_group(self, value: bool) -> None:
        self._set_flag(_GROUP_BIT, value)

    @property
    def is_group_ascending(self) -> bool:
        """True if a group message is still travelling up to the hub."""
        return bool(self.type_and_groups & _GROUP_ASCENDING_BIT)

    @is_group_ascending.setter
    def is_group_ascending(self, value: bool) -> None:
        self._set_flag(_GROUP_ASCENDING_BIT, value)

    def _set_flag(self, bit: int, value: bool) -> None:
        if value:
            self.type_and_groups |= bit
        else:
            self.type_and_groups &= ~bit & 0xFF

    def _header(self) -> bytearray:
        """Build a zero-filled package holding only the header fields."""
        type_and_groups = self.type_and_groups
        # values below 4 carry no type yet
        if type_and_groups < 1 << _TYPE_SHIFT:
            type_and_groups += int(self.message_type) << _TYPE_SHIFT
        package = bytearray(PACKAGE_SIZE)
        _HEADER.pack_into(
            package,
            0,
            self.version,
            self.receiver,
            self.last_device_id,
            self.next_hop,
            type_and_groups,
            0,
            self.timestamp,
        )
        return package

    def to_packages(self) -> list[bytes]:
        """Encode the message as a list of 32-byte packages.

        The base message yields a single package holding only the header,
        without a checksum.
        """
        return [bytes(self._header())]


__all__ = [
    "CHECKSUM_INDEX",
    "CRC_POLY",
    "PACKAGE_SIZE",
    "PAYLOAD_OFFSET",
    "PROTOCOL_VERSION",
    "TIMESTAMP_OFFSET",
    "Message",
    "MessageType",
    "check_checksum",
    "compute_checksum",
    "with_checksum",
]