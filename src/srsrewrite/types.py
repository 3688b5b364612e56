"""
Types and Error Registry for srsrewrite

Addresses, envelope variants and the error kinds raised by the
rewrite engine. Everything here is transient: built from one input,
consumed within one forward/reverse call.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import IntEnum
from typing import Optional, Union


# =============================================================================
# ERROR REGISTRY
# =============================================================================

class ErrorKind(IntEnum):
    """
    Classification of rewrite failures.

    The caller decides what a failure means (bounce, or deliver as a
    plain address); the engine only classifies.
    """
    # Input (0x01XX)
    BAD_ADDRESS_FORMAT = 0x0100
    NOT_AN_SRS_ADDRESS = 0x0101

    # Grammar (0x02XX)
    ENVELOPE_TOO_SHORT = 0x0200
    MISSING_FIELD = 0x0201
    TAG_TOO_SHORT = 0x0202

    # Freshness (0x03XX)
    INVALID_TIMESTAMP_DIGIT = 0x0300
    TIMESTAMP_EXPIRED = 0x0301

    # Authentication (0x04XX)
    TAG_INVALID = 0x0400


class SRSError(ValueError):
    """Base class for every failure raised by srsrewrite."""

    default_kind = ErrorKind.BAD_ADDRESS_FORMAT

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        self.kind = self.default_kind if kind is None else kind


class AddressFormatError(SRSError):
    """Input is not a parseable address or has no '@'."""
    default_kind = ErrorKind.BAD_ADDRESS_FORMAT


class NotSRSAddressError(SRSError):
    """Local-part does not start with a recognized envelope prefix."""
    default_kind = ErrorKind.NOT_AN_SRS_ADDRESS


class EnvelopeError(SRSError):
    """Envelope local-part violates the SRS0/SRS1 grammar."""
    default_kind = ErrorKind.MISSING_FIELD


class TimestampError(SRSError):
    """Timestamp has a bad digit or is outside the freshness window."""
    default_kind = ErrorKind.TIMESTAMP_EXPIRED


class TagInvalidError(SRSError):
    """Authentication tag does not match."""
    default_kind = ErrorKind.TAG_INVALID


# =============================================================================
# ADDRESS
# =============================================================================

@dataclass(frozen=True)
class Address:
    """An address split at its last '@'."""
    local: str
    domain: str

    def __str__(self) -> str:
        return f"{self.local}@{self.domain}"


# =============================================================================
# ENVELOPE VARIANTS
# =============================================================================

@dataclass(frozen=True)
class Unwrapped:
    """A local-part carrying no SRS envelope."""
    local: str


@dataclass(frozen=True)
class ForeignForm1:
    """
    An SRS0 local-part wrapped by some relay.

    opaque starts at the envelope's own first separator and is never
    interpreted by a forwarding relay.
    """
    opaque: str


@dataclass(frozen=True)
class ForeignForm2:
    """An SRS1 local-part: (tag, host) followed by an opaque inner part."""
    tag: str
    host: str
    opaque: str


Envelope = Union[Unwrapped, ForeignForm1, ForeignForm2]


@dataclass(frozen=True)
class Form1Envelope:
    """Parsed fields of SRS0<sep>tag=timestamp=host=user."""
    tag: str
    timestamp: str
    host: str
    user: str


@dataclass(frozen=True)
class ReverseResult:
    """Result of a non-raising reverse check."""
    valid: bool
    address: Optional[str] = None
    error: Optional[str] = None
    kind: Optional[ErrorKind] = None
