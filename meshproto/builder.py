"""Reassembly of command messages from their received packages."""

from __future__ import annotations

from collections import defaultdict

from .messages import CommandMessage, PartialCommandMessage

_MessageKey = tuple[int, int]


class MessageBuilder:
    """Collects partial command messages until a command is complete.

    Packages belong to the same command when they share the last device id
    and the timestamp. The package numbered 0 carries the total number of
    packages in its first content byte and the command in its second.
    """

    def __init__(self) -> None:
        self._parts: defaultdict[_MessageKey, list[PartialCommandMessage]] = (
            defaultdict(list)
        )
        self._package_counts: dict[_MessageKey, int] = {}

    def add(self, message: PartialCommandMessage) -> CommandMessage | None:
        """Record a received package.

        Returns the assembled command message once every package of it has
        arrived, otherwise None. The content of the result may end in
        padding zeros.
        """
        key = (message.last_device_id, message.timestamp)
        parts = self._parts[key]
        parts.append(message)

        if message.package_number == 0:
            self._package_counts.setdefault(key, message.content[0])
        elif key not in self._package_counts:
            # the first package, which holds the count, has not arrived yet
            return None

        count = self._package_counts[key]
        if len(parts) != count:
            return None

        by_number: dict[int, PartialCommandMessage] = {}
        for part in parts:
            by_number.setdefault(part.package_number, part)

        command = 0
        content = bytearray()
        for number in range(count):
            part = by_number.get(number)
            if part is None:
                continue
            if number == 0:
                command = part.content[1]
                content += part.content[2:]
            else:
                content += part.content

        result = CommandMessage(
            message.receiver,
            message.last_device_id,
            message.next_hop,
            command=command,
            content=bytes(content),
            timestamp=message.timestamp,
        )
        result.is_group = message.is_group
        result.is_group_ascending = message.is_group_ascending
        return result


__all__ = ["MessageBuilder"]