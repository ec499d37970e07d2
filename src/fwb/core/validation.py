"""Input validation utilities.

Provides validation for:
- Decision durations (Go-style strings such as "4h", "1h30m", "250ms")
- Firewall table names

All validators return the validated value or raise ValidationError.
"""

import re
from datetime import timedelta

from fwb.core.exceptions import ValidationError


# Duration units, in nanoseconds
DURATION_UNITS: dict[str, int] = {
    "ns": 1,
    "us": 1_000,
    "µs": 1_000,  # micro sign
    "μs": 1_000,  # greek mu
    "ms": 1_000_000,
    "s": 1_000_000_000,
    "m": 60 * 1_000_000_000,
    "h": 3600 * 1_000_000_000,
}

# Largest representable duration: int64 nanoseconds
MAX_DURATION_NS = 2**63 - 1

DURATION_COMPONENT = re.compile(r"([0-9]*)(?:\.([0-9]*))?([a-zµμ]+)")

# pf limits table names to PF_TABLE_NAME_SIZE - 1 characters
MAX_TABLE_NAME_LENGTH = 31
TABLE_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.\-]+$")


def parse_duration(value: str) -> timedelta:
    """Parse a duration string into a timedelta.

    Accepts an optional sign followed by one or more decimal numbers,
    each with a unit suffix (ns, us, ms, s, m, h). "0" is accepted
    without a unit. Only ASCII digits are recognized, and the total
    must fit in a signed 64-bit count of nanoseconds. Sub-microsecond
    remainders are truncated.

    Args:
        value: Duration string (e.g., "4h", "3h59m58.5s", "-1m")

    Returns:
        Parsed duration

    Raises:
        ValidationError: If the string is not a valid duration
    """
    original = value
    if not value:
        raise ValidationError(
            "Invalid duration: empty string",
            hint="Use format like 4h, 30m or 1h30m",
        )

    negative = False
    if value[0] in "+-":
        negative = value[0] == "-"
        value = value[1:]

    if value == "0":
        return timedelta(0)

    if not value:
        raise ValidationError(f"Invalid duration: {original!r}")

    total_ns = 0
    pos = 0
    while pos < len(value):
        match = DURATION_COMPONENT.match(value, pos)
        if not match or not (match.group(1) or match.group(2)):
            raise ValidationError(
                f"Invalid duration: {original!r}",
                hint="Use format like 4h, 30m or 1h30m",
            )
        whole, fraction, unit = match.groups()
        if unit not in DURATION_UNITS:
            raise ValidationError(
                f"Unknown unit {unit!r} in duration {original!r}",
                hint=f"Valid units: {', '.join(sorted(DURATION_UNITS))}",
            )
        scale = DURATION_UNITS[unit]
        total_ns += int(whole or "0") * scale
        if fraction:
            total_ns += int(fraction) * scale // 10 ** len(fraction)
        if total_ns > MAX_DURATION_NS + negative:
            raise ValidationError(f"Invalid duration: {original!r} (overflow)")
        pos = match.end()

    try:
        result = timedelta(microseconds=total_ns // 1000)
    except OverflowError as e:
        raise ValidationError(f"Invalid duration: {original!r} (overflow)") from e
    return -result if negative else result


def validate_table_name(value: str) -> str:
    """Validate a firewall table name.

    Args:
        value: Table name to validate

    Returns:
        The validated table name

    Raises:
        ValidationError: If validation fails
    """
    value = value.strip()

    if not value:
        raise ValidationError("Table name cannot be empty")

    if len(value) > MAX_TABLE_NAME_LENGTH:
        raise ValidationError(
            f"Table name too long: {value} ({len(value)} > {MAX_TABLE_NAME_LENGTH})",
        )

    if not TABLE_NAME_PATTERN.match(value):
        raise ValidationError(
            f"Invalid table name: {value}",
            hint="Use letters, digits, '_', '-' and '.' only",
        )

    return value
