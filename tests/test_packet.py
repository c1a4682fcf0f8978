import struct

import pytest

from meshproto.packet import (
    CHECKSUM_INDEX,
    PACKAGE_SIZE,
    PROTOCOL_VERSION,
    Message,
    MessageType,
    check_checksum,
    compute_checksum,
    with_checksum,
)


class _PingLike(Message):
    message_type = MessageType.PING


def _sample_package() -> bytes:
    return bytes((index * 37 + 11) % 256 for index in range(PACKAGE_SIZE))


def test_with_checksum_makes_package_valid():
    package = with_checksum(_sample_package())
    assert check_checksum(package)
    assert package[CHECKSUM_INDEX] == compute_checksum(package)


def test_with_checksum_keeps_other_bytes():
    original = _sample_package()
    package = with_checksum(original)
    assert len(package) == PACKAGE_SIZE
    assert package[:CHECKSUM_INDEX] == original[:CHECKSUM_INDEX]
    assert package[CHECKSUM_INDEX + 1:] == original[CHECKSUM_INDEX + 1:]


def test_checksum_ignores_checksum_byte():
    first = bytearray(_sample_package())
    second = bytearray(first)
    first[CHECKSUM_INDEX] = 0
    second[CHECKSUM_INDEX] = 0xAB
    assert compute_checksum(first) == compute_checksum(second)


def test_check_checksum_does_not_modify_input():
    package = bytearray(with_checksum(_sample_package()))
    saved = bytes(package)
    assert check_checksum(package)
    assert bytes(package) == saved


@pytest.mark.parametrize(
    "position", [i for i in range(PACKAGE_SIZE) if i != CHECKSUM_INDEX]
)
def test_single_byte_change_is_detected(position):
    package = bytearray(with_checksum(_sample_package()))
    package[position] ^= 0x01
    assert not check_checksum(package)


def test_changed_last_device_is_detected():
    message = Message(receiver=10, last_device_id=20, next_hop=30, timestamp=99)
    package = bytearray(with_checksum(message.to_packages()[0]))
    assert check_checksum(package)
    package[2] = 21
    assert not check_checksum(package)


@pytest.mark.parametrize("size", [0, 31, 33])
def test_wrong_length_is_rejected(size):
    with pytest.raises(ValueError):
        compute_checksum(bytes(size))
    with pytest.raises(ValueError):
        check_checksum(bytes(size))
    with pytest.raises(ValueError):
        with_checksum(bytes(size))


def test_to_packages_header_layout():
    message = Message(receiver=7, last_device_id=8, next_hop=9, timestamp=0x04030201)
    packages = message.to_packages()
    assert len(packages) == 1
    package = packages[0]
    assert len(package) == PACKAGE_SIZE
    assert package[0] == PROTOCOL_VERSION
    assert package[1] == 7
    assert package[2] == 8
    assert package[3] == 9
    assert package[4] >> 2 == MessageType.COMMAND
    assert package[CHECKSUM_INDEX] == 0
    assert package[6:10] == bytes([1, 2, 3, 4])
    assert package[10:] == bytes(PACKAGE_SIZE - 10)


def test_to_packages_adds_type_when_missing():
    message = _PingLike(receiver=1, last_device_id=2, next_hop=3)
    message.is_group = True
    package = Message.to_packages(message)[0]
    assert package[4] >> 2 == MessageType.PING
    assert package[4] & 0b11 == 0b01
    assert check_checksum(with_checksum(package))


def test_to_packages_keeps_type_already_set():
    type_and_groups = (MessageType.ROUTE_CREATION << 2) | 1
    message = _PingLike(
        receiver=1, last_device_id=2, next_hop=3, type_and_groups=type_and_groups
    )
    package = Message.to_packages(message)[0]
    assert package[4] == type_and_groups
    assert with_checksum(package)[4] == type_and_groups


def test_group_flags():
    message = Message(receiver=1, last_device_id=2, next_hop=3)
    assert not message.is_group
    assert not message.is_group_ascending
    message.is_group = True
    assert message.is_group
    assert not message.is_group_ascending
    message.is_group_ascending = True
    assert message.is_group_ascending
    assert message.type_and_groups & 0b11 == 0b11
    message.is_group = False
    assert not message.is_group
    assert message.is_group_ascending


def test_group_flags_from_type_byte():
    message = Message(
        receiver=1, last_device_id=2, next_hop=3, type_and_groups=(3 << 2) | 0b10
    )
    assert not message.is_group
    assert message.is_group_ascending


def test_default_version_and_timestamp():
    message = Message(receiver=1, last_device_id=2, next_hop=3)
    assert message.version == PROTOCOL_VERSION
    assert message.timestamp == 0
    assert message.message_type == MessageType.COMMAND


def test_largest_timestamp_is_encoded():
    message = Message(receiver=1, last_device_id=2, next_hop=3, timestamp=0xFFFFFFFF)
    package = message.to_packages()[0]
    assert package[6:10] == bytes([0xFF, 0xFF, 0xFF, 0xFF])


def test_timestamp_out_of_range_is_rejected():
    message = Message(receiver=1, last_device_id=2, next_hop=3, timestamp=1 << 32)
    with pytest.raises((OverflowError, ValueError, struct.error)):
        message.to_packages()


def test_message_type_values_follow_wire_numbers():
    assert [MessageType(number) for number in range(7)] == list(MessageType)
    assert MessageType(0) == MessageType.COMMAND
    assert MessageType(4) == MessageType.PING
    assert MessageType(5) == MessageType.ROUTE_CREATION
    with pytest.raises(ValueError):
        MessageType(7)