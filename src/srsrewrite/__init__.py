"""
srsrewrite: Sender Rewriting Scheme

Reversible, authenticated rewriting of envelope senders so forwarded
mail passes SPF at the next hop:

    user@origin.example
        -> SRS0=TAG=TT=origin.example=user@relay.example     (forward)
        -> user@origin.example                                (reverse)

Usage:
    from srsrewrite import SRS

    srs = SRS(secret=b"tops3cr3t", domain="relay.example")
    wrapped = srs.forward("user@origin.example")
    original = srs.reverse(wrapped)

    # Non-raising check for bounce handling
    result = srs.check(wrapped)
    if not result.valid:
        print(result.kind, result.error)
"""

# Types and errors
from .types import (
    ErrorKind,
    SRSError,
    AddressFormatError,
    NotSRSAddressError,
    EnvelopeError,
    TimestampError,
    TagInvalidError,
    Address,
    Unwrapped,
    ForeignForm1,
    ForeignForm2,
    Form1Envelope,
    ReverseResult,
)

# Building blocks
from .address import split_address
from .auth import compute_tag, verify_tag
from .timeslot import encode_timeslot, decode_timeslot, check_timeslot
from .grammar import classify, parse_form1, parse_form2, find_double_separator

# Main API
from .config import SRSConfig
from .engine import SRS, forward, reverse

__version__ = "0.1.0"

__all__ = [
    # Version
    "__version__",
    # Types
    "ErrorKind",
    "SRSError",
    "AddressFormatError",
    "NotSRSAddressError",
    "EnvelopeError",
    "TimestampError",
    "TagInvalidError",
    "Address",
    "Unwrapped",
    "ForeignForm1",
    "ForeignForm2",
    "Form1Envelope",
    "ReverseResult",
    # Building blocks
    "split_address",
    "compute_tag",
    "verify_tag",
    "encode_timeslot",
    "decode_timeslot",
    "check_timeslot",
    "classify",
    "parse_form1",
    "parse_form2",
    "find_double_separator",
    # Main API
    "SRSConfig",
    "SRS",
    "forward",
    "reverse",
]
