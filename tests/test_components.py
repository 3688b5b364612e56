"""
Tests for the building blocks: time slots, tags, grammar, addresses
and configuration.
"""

import pytest
from datetime import datetime, timezone

from srsrewrite.types import (
    ErrorKind, AddressFormatError, EnvelopeError, TimestampError,
    Unwrapped, ForeignForm1, ForeignForm2, Form1Envelope,
)
from srsrewrite.address import split_address
from srsrewrite.auth import compute_tag, verify_tag, canonical_bytes
from srsrewrite.timeslot import (
    ALPHABET, TIME_SLOTS, TIME_PRECISION,
    timeslot, encode_slot, encode_timeslot, decode_timeslot, check_timeslot,
)
from srsrewrite.grammar import (
    classify, envelope_prefix, find_double_separator, parse_form1, parse_form2,
)
from srsrewrite.config import SRSConfig


DAY = TIME_PRECISION
NOW = datetime(2020, 1, 1, 0, 1, tzinfo=timezone.utc).timestamp()


class TestTimeSlot:
    """Radix-32 day counter."""

    def test_known_day(self):
        assert timeslot(NOW) == 854
        assert encode_timeslot(NOW) == "2W"

    def test_zero_is_empty(self):
        assert encode_slot(0) == ""
        assert decode_timeslot("") == 0
        assert encode_timeslot(0) == ""

    def test_single_and_double_digits(self):
        assert encode_slot(1) == "B"
        assert encode_slot(31) == "7"
        assert encode_slot(32) == "BA"
        assert encode_slot(1023) == "77"

    def test_cycle(self):
        assert timeslot(NOW + TIME_SLOTS * DAY) == timeslot(NOW)
        assert timeslot(TIME_SLOTS * DAY - 1) == TIME_SLOTS - 1

    def test_decode_case_insensitive(self):
        assert decode_timeslot("2w") == decode_timeslot("2W") == 854

    def test_every_slot_decodes(self):
        for slot in range(TIME_SLOTS):
            assert decode_timeslot(encode_slot(slot)) == slot

    def test_alphabet(self):
        assert len(ALPHABET) == 32
        assert len(set(ALPHABET)) == 32

    @pytest.mark.parametrize("text", ["00", "1A", "A8", "A=", "é"])
    def test_invalid_digit(self, text):
        with pytest.raises(TimestampError) as exc:
            decode_timeslot(text)
        assert exc.value.kind == ErrorKind.INVALID_TIMESTAMP_DIGIT

    def test_window(self):
        assert check_timeslot("2W", NOW, 21) == 854
        assert check_timeslot(encode_slot(854 - 21), NOW, 21) == 833
        with pytest.raises(TimestampError) as exc:
            check_timeslot(encode_slot(854 - 22), NOW, 21)
        assert exc.value.kind == ErrorKind.TIMESTAMP_EXPIRED

    def test_zero_max_age(self):
        assert check_timeslot("2W", NOW, 0) == 854
        with pytest.raises(TimestampError):
            check_timeslot("2V", NOW, 0)

    def test_wraparound(self):
        # Slot 5, stamped at slot 1020 nine days earlier
        now = (TIME_SLOTS * 30 + 5) * DAY
        assert check_timeslot(encode_slot(1020), now, 21) == 1020
        with pytest.raises(TimestampError):
            check_timeslot(encode_slot(1000), now, 21)

    def test_future_rejected(self):
        with pytest.raises(TimestampError):
            check_timeslot(encode_slot(855), NOW, 21)

    def test_oversized_stamp(self):
        with pytest.raises(TimestampError) as exc:
            check_timeslot("7" * 40, NOW, 21)
        assert exc.value.kind == ErrorKind.TIMESTAMP_EXPIRED


class TestAuthTag:
    """Truncated HMAC-SHA1 tags."""

    SECRET = b"tops3cr3t"

    def test_known_tags(self):
        assert compute_tag(self.SECRET, ["2W", "otherdomain.com", "test"]) == "vmyz"
        assert compute_tag(self.SECRET, ["otherdomain.com", "=opaque+string"]) == "chaI"
        assert compute_tag(self.SECRET, ["thirddomain.com", "=opaque+string"]) == "JIBX"

    def test_case_folded_input(self):
        assert compute_tag(self.SECRET, ["2W", "OtherDomain.COM", "TEST"]) == "vmyz"
        assert canonical_bytes(["A", "b", "C"]) == b"abc"

    def test_length(self):
        for length in (1, 4, 8, 27):
            assert len(compute_tag(self.SECRET, ["x"], length)) == length

    def test_verify_case_insensitive(self):
        fields = ["2W", "otherdomain.com", "test"]
        assert verify_tag("vmyz", self.SECRET, fields)
        assert verify_tag("VMYZ", self.SECRET, fields)
        assert not verify_tag("vmyy", self.SECRET, fields)
        assert not verify_tag("", self.SECRET, fields)
        assert not verify_tag("vmyzz", self.SECRET, fields)

    def test_field_boundaries_not_tagged(self):
        # Fields are concatenated; the grammar keeps them apart
        assert compute_tag(self.SECRET, ["ab", "c"]) == compute_tag(self.SECRET, ["a", "bc"])


class TestGrammar:
    """Envelope prefixes and parsing."""

    @pytest.mark.parametrize("local,prefix", [
        ("SRS0=abc", "SRS0"),
        ("srs0+abc", "SRS0"),
        ("Srs1-abc", "SRS1"),
        ("SRS1=", "SRS1"),
        ("SRS0", ""),
        ("SRS0*abc", ""),
        ("SRS2=abc", ""),
        ("user", ""),
        ("", ""),
    ])
    def test_prefix(self, local, prefix):
        assert envelope_prefix(local) == prefix

    def test_classify(self):
        assert classify("user") == Unwrapped("user")
        assert classify("SRS0=a=b=c=d") == ForeignForm1("=a=b=c=d")
        assert classify("SRS0-opaque") == ForeignForm1("-opaque")
        assert classify("SRS1=TAGX=host.example==inner") == \
            ForeignForm2(tag="TAGX", host="host.example", opaque="=inner")

    def test_classify_bad_srs1(self):
        with pytest.raises(EnvelopeError):
            classify("SRS1=X=thirddomain.com")

    @pytest.mark.parametrize("local,index", [
        ("SRS1=TAGX=host==x", 14),
        ("SRS1=TAGX=host=+x", 14),
        ("SRS1=TAGX=host=-x", 14),
        ("SRS1=TAGX=h=-x==y", 11),
        ("SRS1=TAGX=host=x", -1),
        ("SRS1==+abc=host==x", 5),
        ("SRS1=", -1),
    ])
    def test_double_separator(self, local, index):
        assert find_double_separator(local) == index

    def test_double_separator_skips_prefix(self):
        # A tag starting with '+' would pair with the first separator
        assert find_double_separator("SRS1=+abc=host==x") == 14

    def test_parse_form1(self):
        assert parse_form1("SRS0=vmyz=2W=otherdomain.com=test") == \
            Form1Envelope(tag="vmyz", timestamp="2W", host="otherdomain.com", user="test")

    def test_parse_form1_user_keeps_separators(self):
        env = parse_form1("SRS0+tag=TS=host=a=b=c")
        assert env.user == "a=b=c"
        assert env.host == "host"

    @pytest.mark.parametrize("local,kind", [
        ("SRS0=", ErrorKind.ENVELOPE_TOO_SHORT),
        ("SRS0=tag", ErrorKind.MISSING_FIELD),
        ("SRS0=tag=TS", ErrorKind.MISSING_FIELD),
        ("SRS0=tag=TS=host", ErrorKind.MISSING_FIELD),
    ])
    def test_parse_form1_short(self, local, kind):
        with pytest.raises(EnvelopeError) as exc:
            parse_form1(local)
        assert exc.value.kind == kind

    def test_parse_form2(self):
        env = parse_form2("SRS1=JIBX=thirddomain.com==opaque+string")
        assert env == ForeignForm2(tag="JIBX", host="thirddomain.com", opaque="=opaque+string")

    def test_parse_form2_inner_separator(self):
        env = parse_form2("SRS1-JIBX=thirddomain.com=-opaque")
        assert env.opaque == "-opaque"

    def test_parse_form2_leftmost(self):
        env = parse_form2("SRS1=JIBX=thirddomain.com==a==b")
        assert env.host == "thirddomain.com"
        assert env.opaque == "=a==b"

    @pytest.mark.parametrize("local,kind", [
        ("SRS1=", ErrorKind.ENVELOPE_TOO_SHORT),
        ("SRS1=X=thirddomain.com", ErrorKind.MISSING_FIELD),
        ("SRS1=X=a==b", ErrorKind.TAG_TOO_SHORT),
        ("SRS1=XYZ==b", ErrorKind.TAG_TOO_SHORT),
        ("SRS1=TAGXhost==b", ErrorKind.MISSING_FIELD),
    ])
    def test_parse_form2_errors(self, local, kind):
        with pytest.raises(EnvelopeError) as exc:
            parse_form2(local)
        assert exc.value.kind == kind


class TestAddress:
    """Address splitting."""

    @pytest.mark.parametrize("text,local,domain", [
        ("test@domain", "test", "domain"),
        ("SRS0=a=b=c=d@relay.example", "SRS0=a=b=c=d", "relay.example"),
        ("Name <user@host.example>", "user", "host.example"),
        ("first.last+tag@host.example", "first.last+tag", "host.example"),
    ])
    def test_split(self, text, local, domain):
        addr = split_address(text)
        assert (addr.local, addr.domain) == (local, domain)
        assert str(addr) == f"{local}@{domain}"

    @pytest.mark.parametrize("text", [
        "", "no-at", "(test@domain", "@domain", "test@",
        "test@other.com junk", "a@b.com, c@d.com", "foo bar@other.com",
        "<x@other.com", "Name <x@other.com> junk",
    ])
    def test_rejects(self, text):
        with pytest.raises(AddressFormatError) as exc:
            split_address(text)
        assert exc.value.kind == ErrorKind.BAD_ADDRESS_FORMAT


class TestConfig:
    """Configuration validation and loading."""

    def test_defaults(self):
        cfg = SRSConfig(secret="s", domain="relay.example")
        assert cfg.secret == b"s"
        assert cfg.hash_length == 4
        assert cfg.max_age == 21
        assert cfg.separator == "="
        assert isinstance(cfg.clock(), float)

    def test_frozen(self):
        cfg = SRSConfig(secret=b"s", domain="relay.example")
        with pytest.raises(AttributeError):
            cfg.domain = "other.example"

    @pytest.mark.parametrize("kwargs", [
        {"secret": b"", "domain": "relay.example"},
        {"secret": b"s", "domain": ""},
        {"secret": b"s", "domain": "relay.example", "hash_length": 0},
        {"secret": b"s", "domain": "relay.example", "hash_length": 28},
        {"secret": b"s", "domain": "relay.example", "max_age": -1},
        {"secret": b"s", "domain": "relay.example", "separator": "*"},
        {"secret": b"s", "domain": "relay.example", "separator": "=+"},
        {"secret": b"s", "domain": "relay.example", "clock": 0},
    ])
    def test_invalid(self, kwargs):
        with pytest.raises(ValueError):
            SRSConfig(**kwargs)

    def test_repr_hides_secret(self):
        assert "hunter2" not in repr(SRSConfig(secret="hunter2", domain="relay.example"))

    def test_from_env(self):
        cfg = SRSConfig.from_env({
            "SRS_SECRET": "s3",
            "SRS_DOMAIN": "relay.example",
            "SRS_HASH_LENGTH": "6",
            "SRS_MAX_AGE": "10",
            "SRS_SEPARATOR": "+",
        })
        assert cfg.secret == b"s3"
        assert cfg.domain == "relay.example"
        assert (cfg.hash_length, cfg.max_age, cfg.separator) == (6, 10, "+")

    def test_from_env_overrides(self):
        cfg = SRSConfig.from_env(
            {"SRS_SECRET": "s3", "SRS_DOMAIN": "relay.example"},
            domain="other.example", max_age=None,
        )
        assert cfg.domain == "other.example"
        assert cfg.max_age == 21

    def test_from_env_missing(self):
        with pytest.raises(ValueError, match="SRS_SECRET"):
            SRSConfig.from_env({"SRS_DOMAIN": "relay.example"})

    def test_from_env_bad_number(self):
        with pytest.raises(ValueError, match="SRS_MAX_AGE"):
            SRSConfig.from_env({"SRS_SECRET": "s", "SRS_DOMAIN": "d", "SRS_MAX_AGE": "x"})
