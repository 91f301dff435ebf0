"""Pure extractors for values embedded in SIP header strings.

Each function returns None when the header does not have the expected shape;
callers leave the corresponding field unset in that case.
"""

import re
from dataclasses import dataclass

# "LSAN DA 01 CA" <sip:2132684579@66.54.140.46>;tag=as6801cfc9
# <sip:+15551212@host>
ADDRESS_PATTERN = re.compile(r'^"?([^"<]*?)"?\s*<sips?:\s?([a-zA-Z0-9\-_+]+)')
CONTACT_PATTERN = re.compile(r"<sips?:\s?([^>\s]+)>")


@dataclass(frozen=True)
class Address:
    """Display name and user part of a From/To header."""

    name: str
    number: str


def normalize_call_id(value: str | None) -> str:
    """Reduce a Call-ID header value to the aggregation key.

    Drops everything from the first '@' and trailing whitespace. Applying it
    to an already normalized value returns the value unchanged.

    Args:
        value: Raw Call-ID value, e.g. "0c1382a6@66.54.140.46"

    Returns:
        Normalized call identity, or "" when the value is missing
    """
    if not value:
        return ""
    return value.split("@", 1)[0].rstrip()


def parse_address(value: str | None) -> Address | None:
    """Parse a From/To header into display name and number.

    When the header has no display name the number doubles as the name.
    """
    if not value:
        return None

    match = ADDRESS_PATTERN.match(value)
    if not match:
        return None

    name = match.group(1).strip()
    number = match.group(2)
    return Address(name=name or number, number=number)


def parse_contact(value: str | None) -> str | None:
    """Extract the address inside the angle brackets of a Contact header."""
    if not value:
        return None

    match = CONTACT_PATTERN.search(value)
    if not match:
        return None
    return match.group(1)
