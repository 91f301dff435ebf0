"""Listing and picking calls from a finished scan."""

import re

from sip_grapher.models import CallRecord
from sip_grapher.scanner.index import CallIndex


def list_calls(index: CallIndex) -> list[tuple[int, CallRecord]]:
    """Number the calls of an index in discovery order."""
    return list(enumerate(index.records()))


def parse_selection(text: str, index: CallIndex) -> list[str]:
    """Translate a user selection like "0, 2 3" into Call-IDs.

    Non-digit characters separate entries; indexes outside the listing are
    ignored and repeated indexes are kept once.
    """
    call_ids = index.call_ids()
    selected: list[str] = []
    for token in re.findall(r"\d+", text):
        position = int(token)
        if position >= len(call_ids):
            continue
        call_id = call_ids[position]
        if call_id not in selected:
            selected.append(call_id)
    return selected
