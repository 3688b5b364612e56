"""
Time Slot Codec

Day counter used for envelope freshness:

    slot = floor(unix_seconds / 86400) mod 1024

rendered most-significant digit first in the radix-32 alphabet
A-Z2-7 (0 renders as the empty string). The counter wraps every 1024
days, so comparisons are cyclic.
"""

from __future__ import annotations
from typing import Union
from datetime import datetime

from .types import ErrorKind, TimestampError


TIME_PRECISION = 60 * 60 * 24
TIME_SLOTS = 1024
ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
RADIX = len(ALPHABET)

_DIGITS = {c: i for i, c in enumerate(ALPHABET)}

TimeLike = Union[int, float, datetime]


def _seconds(now: TimeLike) -> float:
    if isinstance(now, datetime):
        return now.timestamp()
    return now


def timeslot(now: TimeLike) -> int:
    """Day slot in [0, 1024) for a unix time or aware datetime."""
    return int(_seconds(now) // TIME_PRECISION) % TIME_SLOTS


def encode_slot(slot: int) -> str:
    """Render a slot in radix 32, most significant digit first."""
    digits = []
    while slot > 0:
        slot, r = divmod(slot, RADIX)
        digits.append(ALPHABET[r])
    return ''.join(reversed(digits))


def encode_timeslot(now: TimeLike) -> str:
    """Timestamp field for an envelope created at ``now``."""
    return encode_slot(timeslot(now))


def decode_timeslot(text: str) -> int:
    """
    Decode a timestamp field, case-insensitively.

    Raises:
        TimestampError: a character outside the alphabet
    """
    then = 0
    for c in text:
        value = _DIGITS.get(c.upper())
        if value is None:
            raise TimestampError(
                f"Bad base32 character in timestamp: {c!r}",
                ErrorKind.INVALID_TIMESTAMP_DIGIT
            )
        then = then * RADIX + value
    return then


def check_timeslot(text: str, now: TimeLike, max_age: int) -> int:
    """
    Validate a timestamp field against the freshness window.

    ``now`` is advanced by whole cycles until it is not behind the
    stamp; the stamp is fresh iff now <= then + max_age. A stamp from
    the future therefore lands almost a full cycle in the past.

    Returns:
        The decoded slot

    Raises:
        TimestampError: bad digit or outside the window
    """
    then = decode_timeslot(text)
    current = timeslot(now)

    # Same as adding TIME_SLOTS while current < then, in one step
    if current < then:
        current += -(-(then - current) // TIME_SLOTS) * TIME_SLOTS

    if current > then + max_age:
        raise TimestampError(
            f"Timestamp {text!r} out of date",
            ErrorKind.TIMESTAMP_EXPIRED
        )
    return then
