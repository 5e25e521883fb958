"""
Input normalizers for lease comp payloads.

Each factory returns a parser ``fn(raw) -> value`` that either returns the
normalized value or raises ``ValueError`` with a user-facing message. The
entity schemas collect those messages into one ``ValidationError``.

    enum_of(LEASE_TYPES)              "" / None -> None, unknown tag -> error
    non_negative_int(max_value=1200)  blank -> None, negative -> error, clamps,
                                      above the column range -> error
    non_negative_float(max_value=100)
    text() / required_text()          stripped, blank -> None
    iso_date() / month_end_date()     YYYY-MM-DD (month_end_date snaps to month end)
    iso_datetime()                    ISO 8601
"""

from decimal import Decimal, InvalidOperation

from app.utils.helpers import end_of_month, parse_date_input, parse_datetime_input


def _is_blank(raw) -> bool:
    return raw is None or (isinstance(raw, str) and not raw.strip())


def enum_of(allowed):
    allowed = frozenset(allowed)

    def parse(raw):
        if _is_blank(raw):
            return None
        value = str(raw).strip()
        if value not in allowed:
            raise ValueError(f"must be one of: {', '.join(sorted(allowed))}")
        return value

    return parse


def _to_decimal(raw) -> Decimal:
    if isinstance(raw, bool):
        raise ValueError("must be a number")
    try:
        return Decimal(str(raw).strip().replace(",", ""))
    except InvalidOperation as exc:
        raise ValueError("must be a number") from exc


# Largest values the storage columns accept
INT32_MAX = 2**31 - 1
INT64_MAX = 2**63 - 1
FLOAT_MAX = 1e15


def non_negative_int(max_value: int | None = None, limit: int = INT32_MAX):
    """Whole numbers; *max_value* clamps, anything above *limit* is rejected."""
    def parse(raw):
        if _is_blank(raw):
            return None
        number = _to_decimal(raw)
        if not number.is_finite() or number != number.to_integral_value():
            raise ValueError("must be a whole number")
        if number < 0:
            raise ValueError("must not be negative")
        if max_value is not None and number > max_value:
            return max_value
        if number > limit:
            raise ValueError(f"must be at most {limit}")
        return int(number)

    return parse


def non_negative_float(max_value: float | None = None, limit: float = FLOAT_MAX):
    def parse(raw):
        if _is_blank(raw):
            return None
        number = _to_decimal(raw)
        if not number.is_finite():
            raise ValueError("must be a number")
        if number < 0:
            raise ValueError("must not be negative")
        if max_value is not None and number > max_value:
            return float(max_value)
        if number > Decimal(str(limit)):
            raise ValueError(f"must be at most {limit:g}")
        return float(number)

    return parse


def text(max_length: int | None = None):
    def parse(raw):
        if _is_blank(raw):
            return None
        value = str(raw).strip()
        if max_length is not None and len(value) > max_length:
            raise ValueError(f"must be at most {max_length} characters")
        return value

    return parse


def required_text(max_length: int | None = None):
    optional = text(max_length)

    def parse(raw):
        value = optional(raw)
        if value is None:
            raise ValueError("is required")
        return value

    return parse


def iso_date():
    return parse_date_input


def month_end_date():
    def parse(raw):
        value = parse_date_input(raw)
        return end_of_month(value) if value is not None else None

    return parse


def iso_datetime(required: bool = False):
    def parse(raw):
        value = parse_datetime_input(raw)
        if value is None and required:
            raise ValueError("is required")
        return value

    return parse
