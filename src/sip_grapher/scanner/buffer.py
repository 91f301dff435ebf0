"""Per-message accumulator used while a header block is open."""

from dataclasses import dataclass, field

from sip_grapher.models import Direction


@dataclass
class PacketBuffer:
    """Everything captured for one in-progress SIP message.

    Exactly one of `far` (outbound) or `near` (inbound) is set, depending on
    which marker opened the block.
    """

    far: str | None = None
    near: str | None = None
    method: str | None = None
    dialed_number: str | None = None
    fields: dict[str, str] = field(default_factory=dict)
    timestamp: str | None = None

    @property
    def direction(self) -> Direction:
        return Direction.OUTBOUND if self.far is not None else Direction.INBOUND

    def set_field(self, key: str, value: str) -> None:
        self.fields[key] = value

    def get_field(self, key: str) -> str | None:
        return self.fields.get(key)
