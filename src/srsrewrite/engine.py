"""
Rewrite Engine

SRS = Forward / Reverse over the envelope grammar.

Forward dispatch on the original local-part:
    Unwrapped     -> SRS0<sep>TAG=TT=HOST=USER@relay
    SRS0 envelope -> SRS1<sep>TAG=HOST=<inner>@relay   (inner kept opaque)
    SRS1 envelope -> SRS1<sep>TAG=HOST=<inner>@relay   (outer tag re-signed)

Reverse strips exactly one layer and only checks the tag this relay
wrote; an inner envelope is left for the relay that produced it.
"""

from __future__ import annotations
import logging
from typing import Optional, Union

from .address import split_address
from .auth import compute_tag, verify_tag
from .config import SRSConfig
from .grammar import (
    FORM1_PREFIX, FORM2_PREFIX, FORM2_DELIMITER,
    classify, envelope_prefix, parse_form1, parse_form2,
)
from .timeslot import encode_timeslot, check_timeslot
from .types import (
    ErrorKind, SRSError, NotSRSAddressError, TagInvalidError,
    Unwrapped, ForeignForm1, ForeignForm2, ReverseResult,
)


logger = logging.getLogger(__name__)


class SRS:
    """
    Sender Rewriting Scheme engine for one relay.

    Usage:
        srs = SRS(SRSConfig(secret=b"...", domain="relay.example"))
        bounce_to = srs.forward("user@origin.example")
        original = srs.reverse(bounce_to)

    Instances hold no mutable state and may be shared between threads.
    """

    def __init__(self, config: Optional[SRSConfig] = None, **kwargs):
        """
        Args:
            config: a ready SRSConfig, or
            **kwargs: SRSConfig fields (secret, domain, ...)
        """
        if config is None:
            config = SRSConfig(**kwargs)
        elif kwargs:
            raise TypeError("pass either a config or keyword options, not both")
        self.config = config

    def __repr__(self) -> str:
        return f"SRS({self.config!r})"

    # =========================================================================
    # FORWARD
    # =========================================================================

    def forward(self, address: str) -> str:
        """
        Rewrite a sender address into this relay's domain.

        Addresses already in the relay's domain are returned unchanged.

        Raises:
            AddressFormatError: input is not an address
            EnvelopeError: input is a malformed SRS1 address
        """
        if len(address) > 1 and address.endswith('@') and address.count('@') == 1:
            # Bare trailing '@': validated as if addressed to this relay,
            # then wrapped with an empty original domain
            parsed = split_address(address + self.config.domain)
            return self._wrap(Unwrapped(parsed.local), '')

        parsed = split_address(address)
        if parsed.domain == self.config.domain:
            logger.debug("SRS: %s is local to %s, not rewriting", address, self.config.domain)
            return address

        return self._wrap(classify(parsed.local), parsed.domain)

    def _wrap(self, envelope: Union[Unwrapped, ForeignForm1, ForeignForm2], domain: str) -> str:
        cfg = self.config

        if isinstance(envelope, Unwrapped):
            timestamp = encode_timeslot(cfg.clock())
            tag = self._tag(timestamp, domain, envelope.local)
            local = f"{FORM1_PREFIX}{cfg.separator}{tag}={timestamp}={domain}={envelope.local}"
        elif isinstance(envelope, ForeignForm1):
            tag = self._tag(domain, envelope.opaque)
            local = f"{FORM2_PREFIX}{cfg.separator}{tag}={domain}{FORM2_DELIMITER}{envelope.opaque}"
        elif isinstance(envelope, ForeignForm2):
            tag = self._tag(envelope.host, envelope.opaque)
            local = f"{FORM2_PREFIX}{cfg.separator}{tag}={envelope.host}{FORM2_DELIMITER}{envelope.opaque}"
        else:
            raise TypeError(f"unknown envelope {envelope!r}")

        result = f"{local}@{cfg.domain}"
        logger.debug("SRS: forward %s -> %s", type(envelope).__name__, result)
        return result

    def _tag(self, *fields: str) -> str:
        return compute_tag(self.config.secret, fields, self.config.hash_length)

    # =========================================================================
    # REVERSE
    # =========================================================================

    def reverse(self, address: str) -> str:
        """
        Recover the address one hop back.

        SRS0 yields the original sender; SRS1 yields the SRS0 (or SRS1)
        address at the previous relay.

        Raises:
            AddressFormatError, NotSRSAddressError, EnvelopeError,
            TimestampError, TagInvalidError
        """
        local = split_address(address).local
        prefix = envelope_prefix(local)
        cfg = self.config

        if prefix == FORM1_PREFIX:
            env = parse_form1(local)
            check_timeslot(env.timestamp, cfg.clock(), cfg.max_age)
            if not verify_tag(env.tag, cfg.secret, (env.timestamp, env.host, env.user), cfg.hash_length):
                raise TagInvalidError(f"Hash invalid in SRS address {address!r}")
            return f"{env.user}@{env.host}"

        if prefix == FORM2_PREFIX:
            env = parse_form2(local)
            if not verify_tag(env.tag, cfg.secret, (env.host, env.opaque), cfg.hash_length):
                raise TagInvalidError(f"Hash invalid in SRS address {address!r}")
            return f"{FORM1_PREFIX}{env.opaque}@{env.host}"

        raise NotSRSAddressError(f"Not an SRS address: {address!r}")

    def check(self, address: str) -> ReverseResult:
        """Reverse without raising; failures are described in the result."""
        try:
            original = self.reverse(address)
        except SRSError as e:
            if e.kind == ErrorKind.NOT_AN_SRS_ADDRESS:
                logger.debug("SRS: ignoring unsigned address %s", address)
            else:
                logger.warning("SRS: failed to reverse %s: %s", address, e)
            return ReverseResult(valid=False, error=str(e), kind=e.kind)
        logger.info("SRS: reversed %s to %s", address, original)
        return ReverseResult(valid=True, address=original)

    def is_srs(self, address: str) -> bool:
        """True if the local-part carries an SRS0/SRS1 prefix (unverified)."""
        try:
            local = split_address(address).local
        except SRSError:
            return False
        return envelope_prefix(local) != ''


# =============================================================================
# CONVENIENCE API
# =============================================================================

def forward(address: str, config: SRSConfig) -> str:
    """Convenience function for SRS(config).forward(address)."""
    return SRS(config).forward(address)


def reverse(address: str, config: SRSConfig) -> str:
    """Convenience function for SRS(config).reverse(address)."""
    return SRS(config).reverse(address)
