"""Exceptions raised by the log scanner."""


class InputUnavailableError(OSError):
    """The log file could not be opened or read; no result is produced."""
