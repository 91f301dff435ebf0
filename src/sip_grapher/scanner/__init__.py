"""Scanner for SIP messages embedded in Asterisk debug logs."""

from .buffer import PacketBuffer
from .errors import InputUnavailableError
from .fields import Address, normalize_call_id, parse_address, parse_contact
from .filters import CallIdFilter, MatchFilter, NumberFilter, build_filter
from .finalizer import finalize_packet
from .headers import normalize_header_key, split_header_line
from .index import CallIndex
from .lines import ClassifiedLine, LineEvent, classify_line
from .log_scanner import LogScanner, ScanState

__all__ = [
    "Address",
    "CallIdFilter",
    "CallIndex",
    "ClassifiedLine",
    "InputUnavailableError",
    "LineEvent",
    "LogScanner",
    "MatchFilter",
    "NumberFilter",
    "PacketBuffer",
    "ScanState",
    "build_filter",
    "classify_line",
    "finalize_packet",
    "normalize_call_id",
    "normalize_header_key",
    "parse_address",
    "parse_contact",
    "split_header_line",
]
