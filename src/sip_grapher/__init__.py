"""Reconstruct SIP call flows from Asterisk debug logs."""

__version__ = "3.0.0"
