"""Turn a completed PacketBuffer into a SipPacket on its CallRecord.

Only calls started by an INVITE are kept. A block whose Call-ID belongs to
non-call traffic (REGISTER, OPTIONS, SUBSCRIBE, ...) is dropped, and if a
record already exists for that Call-ID without having started with an
INVITE it is removed as well.
"""

import re

from sip_grapher.logging import get_logger, narrate
from sip_grapher.models import CallRecord, SipPacket
from sip_grapher.scanner.buffer import PacketBuffer
from sip_grapher.scanner.fields import normalize_call_id, parse_address, parse_contact
from sip_grapher.scanner.headers import CALL_ID, CONTACT, DID, FROM, TO, USER_AGENT, X_DID
from sip_grapher.scanner.index import CallIndex

logger = get_logger("finalizer")

SESSION_METHOD = "INVITE"

# Messages whose User-Agent identifies one side of the call
AGENT_METHOD_PATTERN = re.compile(r"INVITE|TRYING|PROGRESS|RINGING", re.IGNORECASE)


def is_session_member(method: str | None, record: CallRecord | None) -> bool:
    """Check whether a message belongs to an INVITE-initiated session."""
    if method == SESSION_METHOD:
        return True
    if record is None:
        return False
    first = record.first_packet
    return first is not None and first.method == SESSION_METHOD


def finalize_packet(
    buffer: PacketBuffer,
    index: CallIndex,
    ignore_alternate_did: bool = False,
    verbose: bool = False,
) -> SipPacket | None:
    """Validate a finished block and commit it to the call index.

    Args:
        buffer: Buffer of the block that just ended
        index: Call index to update
        ignore_alternate_did: Do not let X-DID override DID
        verbose: Promote decision narration to INFO

    Returns:
        The committed packet, or None if the block was discarded
    """
    call_id = normalize_call_id(buffer.get_field(CALL_ID))
    if not call_id:
        return None

    record = index.get(call_id)
    if not is_session_member(buffer.method, record):
        narrate(logger, verbose, "Matching packet is not a call, skipping call_id=%s", call_id)
        if record is not None:
            index.delete(call_id)
            narrate(logger, verbose, "Removed non-call record call_id=%s", call_id)
        return None

    narrate(logger, verbose, "Adding packet to call_id=%s method=%s", call_id, buffer.method)
    record = index.get_or_create(call_id)

    caller = parse_address(buffer.get_field(FROM))
    if caller is not None:
        record.set_caller(caller.name, caller.number)

    callee = parse_address(buffer.get_field(TO))
    if callee is not None:
        record.set_callee(callee.name, callee.number)

    _resolve_dialed_number(record, buffer, ignore_alternate_did, verbose)
    _attribute_agent(record, buffer)

    packet = SipPacket(
        direction=buffer.direction,
        method=buffer.method,
        timestamp=buffer.timestamp,
        contact=parse_contact(buffer.get_field(CONTACT)),
    )
    record.append_packet(packet)
    return packet


def _resolve_dialed_number(
    record: CallRecord,
    buffer: PacketBuffer,
    ignore_alternate_did: bool,
    verbose: bool,
) -> None:
    if record.dialed_number is not None:
        return

    # A DID header overrides the number taken from the request line
    did = buffer.get_field(DID) or buffer.dialed_number
    if not did:
        return

    alternate = buffer.get_field(X_DID)
    if alternate and not ignore_alternate_did:
        narrate(logger, verbose, "Using X-DID (%s) for call_id=%s", alternate, record.call_id)
        did = alternate

    record.set_dialed_number(did)


def _attribute_agent(record: CallRecord, buffer: PacketBuffer) -> None:
    agent = buffer.get_field(USER_AGENT)
    if not agent or not buffer.method:
        return
    if not AGENT_METHOD_PATTERN.search(buffer.method):
        return

    if buffer.method == SESSION_METHOD:
        record.set_origin_agent(agent)
    else:
        record.set_dest_agent(agent)
