"""
Envelope Grammar

Two envelope generations share the address local-part:

    SRS0<sep>TAG=TT=HOST=USER           first hop, wraps a plain address
    SRS1<sep>TAG=HOST=<sep'>OPAQUE      re-forward, wraps an SRS0/SRS1 part

<sep> is one of '=', '+', '-' and is chosen by the relay that wrote the
envelope. In SRS1 the '=' after HOST is a fixed delimiter and <sep'> is
the inner envelope's own first separator; OPAQUE begins with <sep'> and
is carried byte for byte.
"""

from __future__ import annotations

from .types import (
    ErrorKind, EnvelopeError,
    Envelope, Unwrapped, ForeignForm1, ForeignForm2, Form1Envelope,
)


FORM1_PREFIX = "SRS0"
FORM2_PREFIX = "SRS1"
SEPARATORS = "=+-"
PREFIX_LENGTH = len(FORM1_PREFIX) + 1

# Delimiter between HOST and the inner envelope of SRS1
FORM2_DELIMITER = "="

# Index floor for the SRS1 double separator: "SRS1<sep>" plus at least
# a tag, '=' and a host must precede it.
FORM2_MIN_HEAD = 8


def envelope_prefix(local: str) -> str:
    """
    Return 'SRS0', 'SRS1' or '' for a local-part.

    Only the first five characters are inspected, case-insensitively.
    """
    if len(local) < PREFIX_LENGTH or local[PREFIX_LENGTH - 1] not in SEPARATORS:
        return ''
    head = local[:PREFIX_LENGTH - 1].upper()
    if head in (FORM1_PREFIX, FORM2_PREFIX):
        return head
    return ''


def find_double_separator(local: str, start: int = PREFIX_LENGTH) -> int:
    """
    Leftmost index of '==', '=+' or '=-' at or after ``start``.

    The scan runs after the envelope prefix: a tag may begin with '+',
    which would otherwise pair with a '=' first separator. Returns -1
    when there is no match.
    """
    for i in range(start, len(local) - 1):
        if local[i] == FORM2_DELIMITER and local[i + 1] in SEPARATORS:
            return i
    return -1


def parse_form1(local: str) -> Form1Envelope:
    """
    Parse SRS0<sep>TAG=TT=HOST=USER.

    USER keeps any further '=' characters.

    Raises:
        EnvelopeError: empty envelope or fewer than four fields
    """
    rest = local[PREFIX_LENGTH:]
    if not rest:
        raise EnvelopeError("No authenticating hash in SRS0 address",
                            ErrorKind.ENVELOPE_TOO_SHORT)

    parts = rest.split('=', 3)
    if len(parts) < 4:
        missing = ("timestamp", "original domain", "original local-part")[len(parts) - 1]
        raise EnvelopeError(f"No {missing} in SRS0 address", ErrorKind.MISSING_FIELD)

    tag, timestamp, host, user = parts
    return Form1Envelope(tag=tag, timestamp=timestamp, host=host, user=user)


def parse_form2(local: str) -> ForeignForm2:
    """
    Parse SRS1<sep>TAG=HOST=<sep'>OPAQUE.

    Raises:
        EnvelopeError: no double separator, a head too short to hold a
            tag and host, or no '=' between tag and host
    """
    if len(local) <= PREFIX_LENGTH:
        raise EnvelopeError("Empty SRS1 envelope", ErrorKind.ENVELOPE_TOO_SHORT)

    index = find_double_separator(local)
    if index < 0:
        raise EnvelopeError("No inner address in SRS1 address", ErrorKind.MISSING_FIELD)
    if index <= FORM2_MIN_HEAD:
        raise EnvelopeError("Hash too short in SRS1 address", ErrorKind.TAG_TOO_SHORT)

    tag, sep, host = local[PREFIX_LENGTH:index].partition('=')
    if not sep:
        raise EnvelopeError("No host in SRS1 address", ErrorKind.MISSING_FIELD)

    return ForeignForm2(tag=tag, host=host, opaque=local[index + 1:])


def classify(local: str) -> Envelope:
    """
    Classify a local-part for forwarding.

    SRS1 parts are parsed here since re-forwarding needs their host and
    opaque part; SRS0 parts stay opaque.

    Raises:
        EnvelopeError: a malformed SRS1 local-part
    """
    prefix = envelope_prefix(local)
    if prefix == FORM1_PREFIX:
        return ForeignForm1(opaque=local[PREFIX_LENGTH - 1:])
    if prefix == FORM2_PREFIX:
        return parse_form2(local)
    return Unwrapped(local=local)
