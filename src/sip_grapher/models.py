"""Call data models."""

from dataclasses import dataclass, field
from enum import Enum


class Direction(str, Enum):
    """Which way a message travelled relative to the switch."""

    OUTBOUND = "outbound"  # sent by the switch ("Transmitting to ...")
    INBOUND = "inbound"  # received by the switch ("SIP read from ...")


@dataclass(frozen=True)
class SipPacket:
    """One SIP message recovered from the log."""

    direction: Direction
    method: str | None  # request verb or "<code> <reason>"
    timestamp: str | None  # raw log timestamp, e.g. "Mar  8 03:18:46"
    contact: str | None = None


@dataclass
class CallRecord:
    """Aggregated view of one call, keyed by normalized Call-ID.

    Identity and agent fields follow first-write-wins: the setters only
    assign a value when the field is still unset and report whether they did.
    """

    call_id: str
    caller_name: str | None = None
    caller_number: str | None = None
    callee_name: str | None = None
    callee_number: str | None = None
    dialed_number: str | None = None
    origin_agent_label: str | None = None
    dest_agent_label: str | None = None
    packets: list[SipPacket] = field(default_factory=list)

    def set_caller(self, name: str, number: str) -> bool:
        if self.caller_name is not None or self.caller_number is not None:
            return False
        self.caller_name = name
        self.caller_number = number
        return True

    def set_callee(self, name: str, number: str) -> bool:
        if self.callee_number is not None:
            return False
        self.callee_name = name
        self.callee_number = number
        return True

    def set_dialed_number(self, number: str) -> bool:
        if self.dialed_number is not None:
            return False
        self.dialed_number = number
        return True

    def set_origin_agent(self, label: str) -> bool:
        if self.origin_agent_label is not None:
            return False
        self.origin_agent_label = label
        return True

    def set_dest_agent(self, label: str) -> bool:
        if self.dest_agent_label is not None:
            return False
        self.dest_agent_label = label
        return True

    def append_packet(self, packet: SipPacket) -> None:
        self.packets.append(packet)

    @property
    def first_packet(self) -> SipPacket | None:
        return self.packets[0] if self.packets else None

    @property
    def first_timestamp(self) -> str | None:
        """Timestamp of the first packet (call start)."""
        return self.packets[0].timestamp if self.packets else None

    @property
    def last_timestamp(self) -> str | None:
        """Timestamp of the last packet (call end)."""
        return self.packets[-1].timestamp if self.packets else None
