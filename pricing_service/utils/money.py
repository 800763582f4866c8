from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR, ROUND_HALF_UP


TWO_DEC = Decimal("0.01")
SIX_DEC = Decimal("0.000001")
ZERO = Decimal("0")


def quantize(value: Decimal, unit: Decimal, rounding=ROUND_HALF_UP) -> Decimal:
    return value.quantize(unit, rounding=rounding)


def round2(value: Decimal) -> Decimal:
    return quantize(value, TWO_DEC)


def to_decimal(value) -> Decimal:
    # str() keeps 0.065 as 0.065 instead of its binary expansion
    result = Decimal(str(value))
    if not result.is_finite():
        raise ValueError(f"Expected a finite number, got {value!r}")
    return result


def round_to_increment(value: Decimal, increment: Decimal, rounding=ROUND_HALF_UP) -> Decimal:
    return (value / increment).quantize(Decimal("1"), rounding=rounding) * increment


def floor_to_increment(value: Decimal, increment: Decimal) -> Decimal:
    return round_to_increment(value, increment, ROUND_FLOOR)


def ceil_to_increment(value: Decimal, increment: Decimal) -> Decimal:
    return round_to_increment(value, increment, ROUND_CEILING)


def format_gbp(amount) -> str:
    """Format as pounds with two decimals, e.g. 1234.5 -> '£1,234.50'."""
    safe = amount if isinstance(amount, (int, float, Decimal)) and amount == amount else 0
    return f"£{safe:,.2f}"
