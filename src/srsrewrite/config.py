"""
Relay Configuration

SRSConfig holds everything a relay needs to forward and reverse:

    secret      HMAC key, shared by every relay host of one domain
    domain      the forwarding domain written after '@'
    hash_length characters of base64 tag kept (default 4)
    max_age     freshness window in days (default 21)
    separator   first separator after SRS0/SRS1 (default '=')
    clock       callable returning unix time (default time.time)

The value is immutable and fully validated on construction.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable, Mapping, Optional, Union
import os
import time

from .auth import DEFAULT_HASH_LENGTH, MAX_HASH_LENGTH
from .grammar import SEPARATORS


DEFAULT_MAX_AGE = 21
DEFAULT_SEPARATOR = '='

ENV_PREFIX = 'SRS_'


@dataclass(frozen=True)
class SRSConfig:
    """Validated, immutable relay configuration."""

    secret: Union[bytes, str]
    domain: str
    hash_length: int = DEFAULT_HASH_LENGTH
    max_age: int = DEFAULT_MAX_AGE
    separator: str = DEFAULT_SEPARATOR
    clock: Callable[[], float] = field(default=time.time, compare=False, repr=False)

    def __post_init__(self):
        if isinstance(self.secret, str):
            object.__setattr__(self, 'secret', self.secret.encode('utf-8'))
        if not self.secret:
            raise ValueError("secret must not be empty")
        if not self.domain:
            raise ValueError("domain must not be empty")
        if not 1 <= self.hash_length <= MAX_HASH_LENGTH:
            raise ValueError(
                f"hash_length must be between 1 and {MAX_HASH_LENGTH}, got {self.hash_length}"
            )
        if self.max_age < 0:
            raise ValueError(f"max_age must not be negative, got {self.max_age}")
        if len(self.separator) != 1 or self.separator not in SEPARATORS:
            raise ValueError(f"separator must be one of {SEPARATORS!r}, got {self.separator!r}")
        if not callable(self.clock):
            raise ValueError("clock must be callable")

    def __repr__(self) -> str:
        return (
            f"SRSConfig(domain={self.domain!r}, hash_length={self.hash_length}, "
            f"max_age={self.max_age}, separator={self.separator!r})"
        )

    @classmethod
    def from_env(
        cls,
        environ: Optional[Mapping[str, str]] = None,
        **overrides
    ) -> 'SRSConfig':
        """
        Build a configuration from SRS_* environment variables.

        Recognized: SRS_SECRET, SRS_DOMAIN, SRS_HASH_LENGTH, SRS_MAX_AGE,
        SRS_SEPARATOR. Keyword overrides that are not None win over the
        environment.
        """
        if environ is None:
            environ = os.environ

        values = {}
        for name, convert in (
            ('secret', str),
            ('domain', str),
            ('hash_length', int),
            ('max_age', int),
            ('separator', str),
        ):
            raw = environ.get(ENV_PREFIX + name.upper())
            if raw is not None and raw != '':
                try:
                    values[name] = convert(raw)
                except ValueError:
                    raise ValueError(f"{ENV_PREFIX}{name.upper()}: invalid value {raw!r}") from None

        values.update({k: v for k, v in overrides.items() if v is not None})

        for required in ('secret', 'domain'):
            if required not in values:
                raise ValueError(f"{ENV_PREFIX}{required.upper()} is not set")

        return cls(**values)
