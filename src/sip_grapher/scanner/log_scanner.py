"""Log scanner: a two-state machine over Asterisk SIP debug output.

The scanner is IDLE until a send or receive marker opens a block, then
CAPTURING until the blank line that ends the SIP message. Every
(state, event) pair it reacts to is listed in TRANSITIONS; any other pair
leaves the state unchanged.
"""

from collections.abc import Iterable
from enum import Enum
from pathlib import Path

from sip_grapher.logging import get_logger, narrate
from sip_grapher.scanner.buffer import PacketBuffer
from sip_grapher.scanner.errors import InputUnavailableError
from sip_grapher.scanner.filters import MatchFilter
from sip_grapher.scanner.finalizer import finalize_packet
from sip_grapher.scanner.index import CallIndex
from sip_grapher.scanner.lines import ClassifiedLine, LineEvent, classify_line, clean_line

logger = get_logger("scanner")


class ScanState(Enum):
    IDLE = "idle"
    CAPTURING = "capturing"


# (state, event) -> handler method name; each handler returns the next state
TRANSITIONS: dict[tuple[ScanState, LineEvent], str] = {
    (ScanState.IDLE, LineEvent.TIMESTAMP): "_on_timestamp",
    (ScanState.IDLE, LineEvent.OUTBOUND): "_on_outbound",
    (ScanState.IDLE, LineEvent.INBOUND): "_on_inbound",
    (ScanState.CAPTURING, LineEvent.REQUEST): "_on_request_line",
    (ScanState.CAPTURING, LineEvent.STATUS): "_on_status_line",
    (ScanState.CAPTURING, LineEvent.HEADER): "_on_header",
    (ScanState.CAPTURING, LineEvent.BLANK): "_on_blank",
}


class LogScanner:
    """Scan a log and aggregate matching SIP messages per call.

    A scanner can be reused; every scan starts from an empty index.
    """

    def __init__(
        self,
        match_filter: MatchFilter,
        ignore_alternate_did: bool = False,
        verbose: bool = False,
    ) -> None:
        self.match_filter = match_filter
        self.ignore_alternate_did = ignore_alternate_did
        self.verbose = verbose
        self._reset()

    def _reset(self) -> None:
        self._state = ScanState.IDLE
        self._buffer: PacketBuffer | None = None
        self._pending_timestamp: str | None = None
        self._index = CallIndex()

    @property
    def state(self) -> ScanState:
        return self._state

    def scan_file(self, path: Path) -> CallIndex:
        """Scan a log file from start to end.

        Args:
            path: Path to the Asterisk log file

        Returns:
            Index of every matching call found in the file

        Raises:
            InputUnavailableError: If the file cannot be opened or read
        """
        logger.info("Scanning log: path=%s filter=%s", path, self.match_filter.describe())
        try:
            with open(path, encoding="utf-8", errors="replace") as f:
                index = self.scan_lines(f)
        except OSError as e:
            raise InputUnavailableError(f"Unable to read log {path}: {e}") from e

        logger.info("Scan complete: path=%s calls=%d", path, len(index))
        return index

    def scan_lines(self, lines: Iterable[str]) -> CallIndex:
        """Scan an iterable of raw log lines.

        A block still open when the input ends is dropped, since it never
        saw its terminating blank line.
        """
        self._reset()
        for raw in lines:
            self.feed(raw)

        index = self._index
        self._reset()
        return index

    def feed(self, raw: str) -> None:
        """Advance the state machine by one raw line."""
        line = clean_line(raw)
        classified = classify_line(line, capturing=self._state is ScanState.CAPTURING)

        handler_name = TRANSITIONS.get((self._state, classified.event))
        if handler_name is None:
            return
        self._state = getattr(self, handler_name)(classified)

    def _open_block(self, classified: ClassifiedLine, **hosts: str | None) -> ScanState:
        if classified.timestamp is not None:
            self._pending_timestamp = classified.timestamp
        self._buffer = PacketBuffer(timestamp=self._pending_timestamp, **hosts)
        return ScanState.CAPTURING

    def _discard_block(self) -> ScanState:
        self._buffer = None
        return ScanState.IDLE

    def _on_timestamp(self, classified: ClassifiedLine) -> ScanState:
        self._pending_timestamp = classified.timestamp
        return ScanState.IDLE

    def _on_outbound(self, classified: ClassifiedLine) -> ScanState:
        return self._open_block(classified, far=classified.host)

    def _on_inbound(self, classified: ClassifiedLine) -> ScanState:
        return self._open_block(classified, near=classified.host)

    def _on_request_line(self, classified: ClassifiedLine) -> ScanState:
        assert self._buffer is not None
        self._buffer.method = classified.method
        self._buffer.dialed_number = classified.target
        return ScanState.CAPTURING

    def _on_status_line(self, classified: ClassifiedLine) -> ScanState:
        assert self._buffer is not None
        self._buffer.method = classified.method
        return ScanState.CAPTURING

    def _on_header(self, classified: ClassifiedLine) -> ScanState:
        assert self._buffer is not None
        assert classified.key is not None and classified.value is not None
        self._buffer.set_field(classified.key, classified.value)

        if not self.match_filter.allows(self._buffer, classified.key):
            narrate(
                logger,
                self.verbose,
                "Skipping block at %s=%s, no match for %s",
                classified.key,
                classified.value,
                self.match_filter.describe(),
            )
            return self._discard_block()
        return ScanState.CAPTURING

    def _on_blank(self, classified: ClassifiedLine) -> ScanState:
        assert self._buffer is not None
        finalize_packet(
            self._buffer,
            self._index,
            ignore_alternate_did=self.ignore_alternate_did,
            verbose=self.verbose,
        )
        return self._discard_block()
