"""Call index: normalized Call-ID to CallRecord."""

from collections.abc import Iterator

from sip_grapher.models import CallRecord, SipPacket


class CallIndex:
    """Mapping of call identity to its growing CallRecord.

    Records keep insertion order, which is the order calls were first seen
    in the log.
    """

    def __init__(self) -> None:
        self._records: dict[str, CallRecord] = {}

    def get(self, call_id: str) -> CallRecord | None:
        return self._records.get(call_id)

    def get_or_create(self, call_id: str) -> CallRecord:
        record = self._records.get(call_id)
        if record is None:
            record = CallRecord(call_id=call_id)
            self._records[call_id] = record
        return record

    def append_packet(self, call_id: str, packet: SipPacket) -> CallRecord:
        record = self.get_or_create(call_id)
        record.append_packet(packet)
        return record

    def delete(self, call_id: str) -> bool:
        """Remove a record. Returns True if one existed."""
        return self._records.pop(call_id, None) is not None

    def call_ids(self) -> list[str]:
        return list(self._records)

    def records(self) -> list[CallRecord]:
        return list(self._records.values())

    def __contains__(self, call_id: object) -> bool:
        return call_id in self._records

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[str]:
        return iter(self._records)

    def __getitem__(self, call_id: str) -> CallRecord:
        return self._records[call_id]
