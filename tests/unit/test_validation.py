"""Unit tests for validation utilities."""

import pytest
from datetime import timedelta

from fwb.core.validation import (
    MAX_TABLE_NAME_LENGTH,
    parse_duration,
    validate_table_name,
)
from fwb.core.exceptions import ValidationError


class TestParseDuration:
    """Tests for duration parsing."""

    def test_single_units(self):
        """Each unit should parse."""
        assert parse_duration("4h") == timedelta(hours=4)
        assert parse_duration("30m") == timedelta(minutes=30)
        assert parse_duration("45s") == timedelta(seconds=45)
        assert parse_duration("250ms") == timedelta(milliseconds=250)
        assert parse_duration("10us") == timedelta(microseconds=10)

    def test_compound(self):
        """Compound durations add up."""
        assert parse_duration("1h30m") == timedelta(hours=1, minutes=30)
        assert parse_duration("3h59m58s") == timedelta(hours=3, minutes=59, seconds=58)

    def test_fractional(self):
        """Fractional values should parse."""
        assert parse_duration("1.5h") == timedelta(minutes=90)
        assert parse_duration(".5s") == timedelta(milliseconds=500)

    def test_sign(self):
        """Leading sign is honoured."""
        assert parse_duration("-1m") == timedelta(minutes=-1)
        assert parse_duration("+2s") == timedelta(seconds=2)

    def test_zero(self):
        """Bare zero needs no unit."""
        assert parse_duration("0") == timedelta(0)

    def test_invalid(self):
        """Malformed durations raise ValidationError."""
        for value in ["not-a-duration", "", "4", "h", "-", "1d", "4h ", "1h-30m"]:
            with pytest.raises(ValidationError):
                parse_duration(value)

    def test_unknown_unit_message(self):
        """Unknown units are named in the error."""
        with pytest.raises(ValidationError) as exc:
            parse_duration("2d")
        assert "'d'" in str(exc.value)

    def test_largest_duration(self):
        """Durations up to the int64 nanosecond limit parse."""
        assert parse_duration("2562047h") == timedelta(hours=2562047)

    def test_overflow(self):
        """Durations beyond the int64 nanosecond limit are invalid."""
        for value in ["100000000000h", "2562048h", "9223372036854775808ns"]:
            with pytest.raises(ValidationError) as exc:
                parse_duration(value)
            assert "overflow" in str(exc.value)

    def test_non_ascii_digits(self):
        """Only ASCII digits are numbers."""
        for value in ["٤h", "1٠s", "１m"]:
            with pytest.raises(ValidationError):
                parse_duration(value)

    def test_trailing_dot(self):
        """A number may end with a dot but a lone dot is invalid."""
        assert parse_duration("1.s") == timedelta(seconds=1)
        with pytest.raises(ValidationError):
            parse_duration(".s")


class TestValidateTableName:
    """Tests for table name validation."""

    def test_valid_names(self):
        """Typical names pass."""
        assert validate_table_name("crowdsec-blacklists") == "crowdsec-blacklists"
        assert validate_table_name("bans_v6.1") == "bans_v6.1"

    def test_strips_whitespace(self):
        """Surrounding whitespace is removed."""
        assert validate_table_name("  bans  ") == "bans"

    def test_empty(self):
        """Empty names fail."""
        with pytest.raises(ValidationError):
            validate_table_name("   ")

    def test_too_long(self):
        """Names beyond the pf limit fail."""
        with pytest.raises(ValidationError):
            validate_table_name("x" * (MAX_TABLE_NAME_LENGTH + 1))
        validate_table_name("x" * MAX_TABLE_NAME_LENGTH)

    def test_bad_characters(self):
        """Shell/pf metacharacters are rejected."""
        for name in ["bad name", "<bans>", "bans;rm"]:
            with pytest.raises(ValidationError):
                validate_table_name(name)
