"""Tests for the log scanner state machine."""

from pathlib import Path

import pytest

from sip_grapher.models import Direction
from sip_grapher.scanner.errors import InputUnavailableError
from sip_grapher.scanner.filters import CallIdFilter, NumberFilter
from sip_grapher.scanner.log_scanner import TRANSITIONS, LogScanner, ScanState
from sip_grapher.scanner.lines import LineEvent

INVITE_BLOCK = """\
[Mar  8 03:18:46] VERBOSE[2934] chan_sip.c: Reliably Transmitting (NAT) to 66.54.140.46:5060:
INVITE sip:555-1212@host SIP/2.0
Via: SIP/2.0/UDP 10.0.0.1:5060;branch=z9hG4bK08f32d23;rport
From: "Alice" <sip:1002@host>;tag=as6801cfc9
To: <sip:555-1212@host>
Contact: <sip:1002@10.0.0.1>
Call-ID: abc123@host
CSeq: 102 INVITE
User-Agent: Asterisk PBX
Content-Length: 0

"""

TRYING_BLOCK = """\
[Mar  8 03:18:47] VERBOSE[2934] chan_sip.c:
<--- SIP read from 66.54.140.46:5060 --->
SIP/2.0 100 Trying
Via: SIP/2.0/UDP 10.0.0.1:5060;branch=z9hG4bK08f32d23;rport
From: "Alice" <sip:1002@host>;tag=as6801cfc9
To: <sip:555-1212@host>
Call-ID: abc123@host
CSeq: 102 INVITE
User-Agent: Carrier SBC
Content-Length: 0

"""

BYE_BLOCK = """\
[Mar  8 03:19:30] VERBOSE[2934] chan_sip.c: Reliably Transmitting (NAT) to 66.54.140.46:5060:
BYE sip:555-1212@66.54.140.46 SIP/2.0
From: "Alice" <sip:1002@host>;tag=as6801cfc9
To: <sip:555-1212@host>;tag=remote
Call-ID: abc123@host
CSeq: 103 BYE

"""


def lines_of(*blocks: str) -> list[str]:
    return "".join(blocks).splitlines(keepends=True)


def other_call(call_id: str, caller: str, callee: str, timestamp: str = "Mar  8 04:00:00") -> str:
    return (
        f"[{timestamp}] VERBOSE[1] chan_sip.c: Reliably Transmitting (NAT) to 10.9.9.9:5060:\n"
        f"INVITE sip:{callee}@host SIP/2.0\n"
        f"From: <sip:{caller}@host>;tag=x\n"
        f"To: <sip:{callee}@host>\n"
        f"Call-ID: {call_id}@host\n"
        "\n"
    )


class TestTransitionTable:
    """Tests for the explicit transition table."""

    def test_idle_only_opens_on_markers(self) -> None:
        """Only timestamps and markers are handled while idle."""
        idle_events = {event for state, event in TRANSITIONS if state is ScanState.IDLE}
        assert idle_events == {LineEvent.TIMESTAMP, LineEvent.OUTBOUND, LineEvent.INBOUND}

    def test_capturing_events(self) -> None:
        """Message lines, headers and the terminator are handled while capturing."""
        capturing_events = {event for state, event in TRANSITIONS if state is ScanState.CAPTURING}
        assert capturing_events == {LineEvent.REQUEST, LineEvent.STATUS, LineEvent.HEADER, LineEvent.BLANK}


class TestStateTransitions:
    """Tests for state changes line by line."""

    def test_marker_opens_and_blank_closes(self) -> None:
        """A send marker starts capturing and a blank line ends it."""
        scanner = LogScanner(CallIdFilter("abc"))
        assert scanner.state is ScanState.IDLE
        scanner.feed("Transmitting (no NAT) to 10.0.0.5:5060:\n")
        assert scanner.state is ScanState.CAPTURING
        scanner.feed("INVITE sip:1@host SIP/2.0\n")
        scanner.feed("no separator here\n")
        assert scanner.state is ScanState.CAPTURING
        scanner.feed("\n")
        assert scanner.state is ScanState.IDLE

    def test_filter_failure_returns_to_idle(self) -> None:
        """A non-matching Call-ID aborts the block immediately."""
        scanner = LogScanner(CallIdFilter("abc"))
        scanner.feed("<--- SIP read from 10.0.0.5:5060 --->\n")
        scanner.feed("SIP/2.0 200 OK\n")
        scanner.feed("Call-ID: zzz@host\n")
        assert scanner.state is ScanState.IDLE

    def test_blank_lines_ignored_while_idle(self) -> None:
        """Stray blank lines do nothing when no block is open."""
        scanner = LogScanner(CallIdFilter("abc"))
        scanner.feed("\n")
        scanner.feed("\r\n")
        assert scanner.state is ScanState.IDLE


class TestEndToEnd:
    """Scenario tests over complete log excerpts."""

    def test_single_invite_block(self) -> None:
        """An outbound INVITE yields one call with identity and one packet."""
        index = LogScanner(CallIdFilter("abc")).scan_lines(lines_of(INVITE_BLOCK))

        assert index.call_ids() == ["abc123"]
        record = index["abc123"]
        assert record.caller_name == "Alice"
        assert record.caller_number == "1002"
        assert record.callee_number == "555-1212"
        assert record.dialed_number == "555-1212"
        assert record.origin_agent_label == "Asterisk PBX"
        assert len(record.packets) == 1
        packet = record.packets[0]
        assert packet.direction is Direction.OUTBOUND
        assert packet.method == "INVITE"
        assert packet.timestamp == "Mar  8 03:18:46"
        assert packet.contact == "1002@10.0.0.1"

    def test_full_dialog_keeps_order_and_timestamps(self) -> None:
        """Packets follow log order with the pending timestamp of each block."""
        index = LogScanner(CallIdFilter("abc")).scan_lines(lines_of(INVITE_BLOCK, TRYING_BLOCK, BYE_BLOCK))

        record = index["abc123"]
        assert [(p.direction, p.method, p.timestamp) for p in record.packets] == [
            (Direction.OUTBOUND, "INVITE", "Mar  8 03:18:46"),
            (Direction.INBOUND, "100 Trying", "Mar  8 03:18:47"),
            (Direction.OUTBOUND, "BYE", "Mar  8 03:19:30"),
        ]
        assert record.dest_agent_label == "Carrier SBC"
        assert record.first_timestamp == "Mar  8 03:18:46"
        assert record.last_timestamp == "Mar  8 03:19:30"

    def test_non_session_call_id_creates_nothing(self) -> None:
        """A response or registration with no prior INVITE is not a call."""
        log = (
            "<--- SIP read from 10.0.0.7:5060 --->\n"
            "REGISTER sip:host SIP/2.0\n"
            "Call-ID: abc999@10.0.0.7\n"
            "\n"
            "<--- SIP read from 10.0.0.7:5060 --->\n"
            "SIP/2.0 200 OK\n"
            "Call-ID: abc999@10.0.0.7\n"
            "\n"
        )
        index = LogScanner(CallIdFilter("abc")).scan_lines(lines_of(log))
        assert "abc999" not in index
        assert len(index) == 0

    def test_number_filter_keeps_matching_call_only(self) -> None:
        """Filtering by number keeps only the call involving that number."""
        log = lines_of(INVITE_BLOCK, other_call("def456", caller="2000", callee="3000"))
        index = LogScanner(NumberFilter("1002")).scan_lines(log)
        assert index.call_ids() == ["abc123"]

    def test_number_filter_matches_callee(self) -> None:
        """A number found only in To is enough."""
        log = lines_of(INVITE_BLOCK, other_call("def456", caller="2000", callee="3000"))
        index = LogScanner(NumberFilter("3000")).scan_lines(log)
        assert index.call_ids() == ["def456"]

    def test_call_id_filter_skips_other_calls(self) -> None:
        """Only blocks whose Call-ID matches contribute records."""
        log = lines_of(
            other_call("zzz1", caller="2000", callee="3000"),
            INVITE_BLOCK,
            other_call("zzz2", caller="2001", callee="3001"),
        )
        index = LogScanner(CallIdFilter("abc")).scan_lines(log)
        assert index.call_ids() == ["abc123"]

    def test_compact_call_id_header(self) -> None:
        """'i:' is treated exactly like 'Call-ID:'."""
        full = (
            "Transmitting (no NAT) to 10.0.0.5:5060:\n"
            "INVITE sip:100@host SIP/2.0\n"
            "f: <sip:200@host>\n"
            "t: <sip:100@host>\n"
            "Call-ID: xyz@host\n"
            "\n"
        )
        compact = full.replace("Call-ID:", "I:")
        full_index = LogScanner(CallIdFilter("xyz")).scan_lines(lines_of(full))
        compact_index = LogScanner(CallIdFilter("xyz")).scan_lines(lines_of(compact))

        assert compact_index.call_ids() == full_index.call_ids() == ["xyz"]
        assert compact_index["xyz"] == full_index["xyz"]
        assert compact_index["xyz"].caller_number == "200"

    def test_crlf_log(self) -> None:
        """Windows line endings should not hide the block terminator."""
        log = INVITE_BLOCK.replace("\n", "\r\n")
        index = LogScanner(CallIdFilter("abc")).scan_lines(log.splitlines(keepends=True))
        assert len(index["abc123"].packets) == 1

    def test_unterminated_block_is_dropped(self) -> None:
        """A block cut off by end of input is not committed."""
        index = LogScanner(CallIdFilter("abc")).scan_lines(lines_of(INVITE_BLOCK.rstrip("\n") + "\n"))
        assert len(index) == 0

    def test_timestamp_persists_until_replaced(self) -> None:
        """Blocks without their own timestamp reuse the most recent one."""
        log = (
            "[Mar  8 05:00:00] NOTICE[1] chan_sip.c: something\n"
            "Transmitting (no NAT) to 10.0.0.5:5060:\n"
            "INVITE sip:100@host SIP/2.0\n"
            "Call-ID: abc1@host\n"
            "\n"
            "<--- SIP read from 10.0.0.5:5060 --->\n"
            "SIP/2.0 180 Ringing\n"
            "Call-ID: abc1@host\n"
            "\n"
        )
        record = LogScanner(CallIdFilter("abc")).scan_lines(lines_of(log))["abc1"]
        assert [p.timestamp for p in record.packets] == ["Mar  8 05:00:00", "Mar  8 05:00:00"]

    def test_scanner_is_reusable(self) -> None:
        """Each scan starts from an empty index."""
        scanner = LogScanner(CallIdFilter("abc"))
        first = scanner.scan_lines(lines_of(INVITE_BLOCK))
        second = scanner.scan_lines(lines_of(INVITE_BLOCK))
        assert first is not second
        assert len(second["abc123"].packets) == 1


class TestScanFile:
    """Tests for scanning files on disk."""

    def test_scans_file(self, tmp_path: Path) -> None:
        """scan_file should read the whole file."""
        log_file = tmp_path / "messages"
        log_file.write_text(INVITE_BLOCK + TRYING_BLOCK)

        index = LogScanner(NumberFilter("555")).scan_file(log_file)
        assert len(index["abc123"].packets) == 2

    def test_tolerates_invalid_utf8(self, tmp_path: Path) -> None:
        """Undecodable bytes should not abort the scan."""
        log_file = tmp_path / "messages"
        log_file.write_bytes(b"\xff\xfe garbage\n" + INVITE_BLOCK.encode())

        index = LogScanner(CallIdFilter("abc")).scan_file(log_file)
        assert "abc123" in index

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        """An unreadable log raises InputUnavailableError."""
        with pytest.raises(InputUnavailableError) as exc_info:
            LogScanner(CallIdFilter("abc")).scan_file(tmp_path / "missing")
        assert isinstance(exc_info.value.__cause__, FileNotFoundError)
