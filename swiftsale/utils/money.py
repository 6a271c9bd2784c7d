"""Money and quantity helpers for JSON records (stored as plain numbers)."""
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

CENT = Decimal('0.01')


def to_decimal(value, default='0'):
    """Convert a stored number to Decimal without float artifacts."""
    if value is None or value == '':
        return Decimal(default)
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise ValueError(f'Invalid number: {value!r}')


def to_money(value):
    """Round to cents (half up) and return a float suitable for JSON."""
    return float(to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP))


def money_equal(a, b, tolerance='0.01'):
    """True when two amounts differ by no more than tolerance."""
    return abs(to_decimal(a) - to_decimal(b)) <= Decimal(tolerance)
