"""Line classification for Asterisk SIP debug logs.

Asterisk (with "sip set debug on") writes each SIP message as a marker line
followed by the raw message and a blank line, e.g.:

    [Mar  8 03:18:46] VERBOSE[2934] chan_sip.c: Reliably Transmitting (NAT) to 66.54.140.46:5060:
    INVITE sip:333-3333@vegspace.com SIP/2.0
    Via: SIP/2.0/UDP 66.54.140.46:5060;branch=z9hG4bK08f32d23;rport
    From: "LSAN DA 01 CA" <sip:2132684579@66.54.140.46>;tag=as6801cfc9
    ...
    <blank>

    <--- SIP read from 66.54.140.46:5060 --->
    SIP/2.0 100 Trying
    ...
    <blank>

The classifier only reports what a line looks like; what to do with it is
decided by the scanner's transition table.
"""

import re
from dataclasses import dataclass
from enum import Enum

from sip_grapher.scanner.headers import split_header_line

# Everything below 0x20 plus DEL, so CRLF logs behave like LF logs
CONTROL_CHARS = "".join(chr(c) for c in range(0x20)) + "\x7f"

TIMESTAMP_PATTERN = re.compile(r"^\[?(\w{3}\s{1,2}\d{1,2} (?:\d{2}:){2}\d{2})\]?")
OUTBOUND_PATTERN = re.compile(r"ransmitting.*to (\S+)")
INBOUND_PATTERN = re.compile(r"SIP read from (\S+)")

REQUEST_METHODS = (
    "INVITE",
    "ACK",
    "BYE",
    "CANCEL",
    "REFER",
    "OPTIONS",
    "REGISTER",
    "PRACK",
    "UPDATE",
    "INFO",
    "SUBSCRIBE",
    "NOTIFY",
    "MESSAGE",
    "PUBLISH",
)
REQUEST_PATTERN = re.compile(
    r"^(" + "|".join(REQUEST_METHODS) + r")\s+sips?:\s?([a-zA-Z0-9.\-_+]+)"
)
STATUS_PATTERN = re.compile(r"^SIP/2\.0\s+([a-zA-Z0-9/.\-_+ ]+)")


class LineEvent(Enum):
    TIMESTAMP = "timestamp"
    OUTBOUND = "outbound"
    INBOUND = "inbound"
    REQUEST = "request"
    STATUS = "status"
    HEADER = "header"
    BLANK = "blank"
    OTHER = "other"


@dataclass(frozen=True)
class ClassifiedLine:
    """A log line reduced to the scanning event it represents."""

    event: LineEvent
    timestamp: str | None = None
    host: str | None = None
    method: str | None = None
    target: str | None = None
    key: str | None = None
    value: str | None = None


OTHER_LINE = ClassifiedLine(LineEvent.OTHER)
BLANK_LINE = ClassifiedLine(LineEvent.BLANK)


def clean_line(raw: str) -> str:
    """Strip leading and trailing control characters (newline, CR, tabs)."""
    return raw.strip(CONTROL_CHARS)


def classify_idle(line: str) -> ClassifiedLine:
    """Classify a line seen while no message block is open.

    A leading timestamp may share its line with a send marker, in which case
    the line opens an outbound block stamped with that time. A timestamp
    line carrying anything else is just a timestamp.
    """
    timestamp_match = TIMESTAMP_PATTERN.match(line)
    timestamp = timestamp_match.group(1) if timestamp_match else None

    outbound_match = OUTBOUND_PATTERN.search(line)
    if outbound_match:
        host = outbound_match.group(1)
        if host.endswith(":"):
            host = host[:-1]
        return ClassifiedLine(LineEvent.OUTBOUND, timestamp=timestamp, host=host)

    if timestamp is not None:
        return ClassifiedLine(LineEvent.TIMESTAMP, timestamp=timestamp)

    inbound_match = INBOUND_PATTERN.search(line)
    if inbound_match:
        return ClassifiedLine(LineEvent.INBOUND, host=inbound_match.group(1))

    return OTHER_LINE


def classify_capturing(line: str) -> ClassifiedLine:
    """Classify a line inside an open message block."""
    if not line:
        return BLANK_LINE

    request_match = REQUEST_PATTERN.match(line)
    if request_match:
        return ClassifiedLine(
            LineEvent.REQUEST,
            method=request_match.group(1),
            target=request_match.group(2),
        )

    status_match = STATUS_PATTERN.match(line)
    if status_match:
        return ClassifiedLine(LineEvent.STATUS, method=status_match.group(1).strip())

    header = split_header_line(line)
    if header is not None:
        key, value = header
        return ClassifiedLine(LineEvent.HEADER, key=key, value=value)

    return OTHER_LINE


def classify_line(line: str, capturing: bool) -> ClassifiedLine:
    """Classify a cleaned line according to the scanner's current state."""
    if capturing:
        return classify_capturing(line)
    return classify_idle(line)
