"""
Address Splitting

Splits a mailbox into local-part and domain-part. Parsing is delegated
to the standard library's RFC 5322 reader; this module only accepts its
result when exactly one addr-spec accounts for the whole input, apart
from an optional display name.
"""

from email.utils import getaddresses

from .types import Address, AddressFormatError


def _covers_input(text: str, addr: str) -> bool:
    """True if ``text`` is ``addr`` or ``display-name <addr>``."""
    if text == addr:
        return True
    bracketed = f"<{addr}>"
    if not text.endswith(bracketed):
        return False
    name = text[:-len(bracketed)]
    return not any(c in name for c in '<>@,;:')


def split_address(text: str) -> Address:
    """
    Split an address into (local, domain).

    Accepts a bare addr-spec or a display form such as
    ``Name <user@host>``. The split happens at the last '@' so quoted
    local-parts containing '@' survive.

    Raises:
        AddressFormatError: unparseable input, trailing junk, more than
            one address, no '@', or an empty half
    """
    if not text or not text.strip():
        raise AddressFormatError("Empty address")

    text = text.strip()
    parsed = getaddresses([text])
    if len(parsed) != 1:
        raise AddressFormatError(f"Expected a single address: {text!r}")

    _, addr = parsed[0]
    if not addr or '@' not in addr or not _covers_input(text, addr):
        raise AddressFormatError(f"Bad formatted address: {text!r}")

    local, _, domain = addr.rpartition('@')
    if not local or not domain:
        raise AddressFormatError(f"Bad formatted address: {text!r}")

    return Address(local=local, domain=domain)
