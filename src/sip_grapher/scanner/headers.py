"""Header name normalization.

SIP allows single-letter compact forms for common headers (RFC 3261 7.3.3).
Asterisk prints whichever form the peer sent, so both must land on the same
key before the scanner looks anything up.
"""

CALL_ID = "CALL-ID"
TO = "TO"
FROM = "FROM"
CONTACT = "CONTACT"
VIA = "VIA"
USER_AGENT = "USER-AGENT"
DID = "DID"
X_DID = "X-DID"

KEY_VALUE_SEPARATOR = ":"

COMPACT_ALIASES = {
    "I": CALL_ID,
    "T": TO,
    "F": FROM,
    "M": CONTACT,
    "V": VIA,
}


def normalize_header_key(key: str) -> str:
    """Upper-case a header name and expand compact aliases.

    Args:
        key: Header name as it appears in the log (e.g. "Call-ID", "i")

    Returns:
        Canonical upper-case header name (e.g. "CALL-ID")
    """
    key = key.strip().upper()
    return COMPACT_ALIASES.get(key, key)


def split_header_line(line: str) -> tuple[str, str] | None:
    """Split a "key: value" line on the first separator.

    Returns None when the line has no separator or starts with one.
    The key is normalized; the value has leading whitespace trimmed.
    """
    separator = line.find(KEY_VALUE_SEPARATOR)
    if separator <= 0:
        return None

    key = normalize_header_key(line[:separator])
    value = line[separator + len(KEY_VALUE_SEPARATOR):].lstrip()
    return key, value
