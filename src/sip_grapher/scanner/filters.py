"""Call selection filters applied while a header block is being read.

A filter is consulted after every header is stored in the buffer and can
abort the block as soon as it is known not to match, so non-matching
messages never reach the finalizer.
"""

import re
from abc import ABC, abstractmethod

from sip_grapher.scanner.buffer import PacketBuffer
from sip_grapher.scanner.headers import CALL_ID, FROM, TO


class MatchFilter(ABC):
    """Base class for selection filters."""

    mode: str

    @abstractmethod
    def allows(self, buffer: PacketBuffer, key: str) -> bool:
        """Decide whether the block may continue after `key` was stored.

        Args:
            buffer: Buffer of the open block, already holding `key`
            key: Normalized name of the header just stored

        Returns:
            False to discard the block immediately
        """

    @abstractmethod
    def describe(self) -> str:
        """Short human-readable description for log output."""


class CallIdFilter(MatchFilter):
    """Select blocks whose raw Call-ID value matches a regular expression."""

    mode = "call-id"

    def __init__(self, pattern: str) -> None:
        try:
            self.pattern = re.compile(pattern)
        except re.error as e:
            raise ValueError(f"Invalid Call-ID pattern {pattern!r}: {e}") from e

    def allows(self, buffer: PacketBuffer, key: str) -> bool:
        if key != CALL_ID:
            return True
        return self.pattern.search(buffer.get_field(CALL_ID) or "") is not None

    def describe(self) -> str:
        return f"call-id ~ {self.pattern.pattern}"


class NumberFilter(MatchFilter):
    """Select blocks whose To or From header contains a number.

    The decision waits until both headers have been seen in the block.
    """

    mode = "number"

    def __init__(self, number: str) -> None:
        if not number:
            raise ValueError("Number filter requires a non-empty number")
        self.number = number

    def allows(self, buffer: PacketBuffer, key: str) -> bool:
        to_value = buffer.get_field(TO)
        from_value = buffer.get_field(FROM)
        if to_value is None or from_value is None:
            return True
        return self.number in to_value or self.number in from_value

    def describe(self) -> str:
        return f"number ~ {self.number}"


def build_filter(call_id: str | None = None, number: str | None = None) -> MatchFilter:
    """Create the filter for exactly one selection mode.

    Raises:
        ValueError: If neither or both of call_id and number are given
    """
    if call_id and number:
        raise ValueError("Select by Call-ID or by number, not both")
    if call_id:
        return CallIdFilter(call_id)
    if number:
        return NumberFilter(number)
    raise ValueError("A Call-ID pattern or a number is required")
