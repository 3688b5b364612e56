"""
Authentication Tags

    tag = base64(HMAC-SHA1(secret, lower(f_1 || f_2 || ... || f_n)))[:length]

Fields are concatenated without delimiters in the order the caller
gives. Emission preserves the digest's case; verification ignores it,
since other SRS implementations may fold the local-part.
"""

import base64
import hashlib
import hmac
from typing import Sequence


DEFAULT_HASH_LENGTH = 4
MAX_HASH_LENGTH = 27  # base64 of a 20-byte SHA-1 digest, without the "=" pad


def canonical_bytes(fields: Sequence[str]) -> bytes:
    """Case-folded concatenation of the tagged fields."""
    return ''.join(fields).lower().encode('utf-8')


def compute_tag(secret: bytes, fields: Sequence[str], length: int = DEFAULT_HASH_LENGTH) -> str:
    """Compute a truncated tag over ``fields``."""
    mac = hmac.new(secret, canonical_bytes(fields), hashlib.sha1)
    return base64.b64encode(mac.digest()).decode('ascii')[:length]


def verify_tag(
    tag: str,
    secret: bytes,
    fields: Sequence[str],
    length: int = DEFAULT_HASH_LENGTH
) -> bool:
    """Case-insensitive, constant-time tag comparison."""
    expected = compute_tag(secret, fields, length)
    return hmac.compare_digest(
        tag.lower().encode('utf-8'),
        expected.lower().encode('utf-8')
    )
