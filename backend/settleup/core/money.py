"""Fixed-point money helpers. Everything here works on Decimal, never float."""
from decimal import Decimal, InvalidOperation, ROUND_DOWN, ROUND_HALF_UP
from typing import Any

from .errors import InvalidAmountError

MINOR_UNIT = Decimal('0.01')
SPLIT_TOLERANCE = Decimal('0.01')
ZERO = Decimal('0')
# 12 integer digits keeps every sum well inside the 28-digit context
MAX_AMOUNT = Decimal('999999999999.99')


def to_decimal(value: Any, field: str = "amount") -> Decimal:
    """
    Parse a client-supplied amount into a Decimal.

    Floats go through str() first so 0.1 becomes Decimal('0.1'),
    not its binary expansion.
    """
    if isinstance(value, bool) or value is None:
        raise InvalidAmountError(f"{field} must be a number", field=field)
    if isinstance(value, Decimal):
        amount = value
    else:
        try:
            amount = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            raise InvalidAmountError(f"{field} is not a valid amount: {value!r}", field=field)
    if not amount.is_finite():
        raise InvalidAmountError(f"{field} must be finite", field=field)
    if abs(amount) > MAX_AMOUNT:
        raise InvalidAmountError(
            f"{field} must not exceed {MAX_AMOUNT}",
            field=field,
            details={"actual": str(value)}
        )
    return amount


def to_positive_amount(value: Any, field: str = "amount") -> Decimal:
    """Parse an amount that must be > 0 and a whole number of minor units."""
    amount = to_decimal(value, field)
    if amount <= ZERO:
        raise InvalidAmountError(
            f"{field} must be greater than zero",
            field=field,
            details={"actual": str(amount)}
        )
    if not is_whole_minor_units(amount):
        raise InvalidAmountError(
            f"{field} has more precision than {MINOR_UNIT}",
            field=field,
            details={"actual": str(amount)}
        )
    return amount


def is_whole_minor_units(amount: Decimal) -> bool:
    try:
        return amount == amount.quantize(MINOR_UNIT, rounding=ROUND_DOWN)
    except InvalidOperation:
        return False


def to_minor_units(amount: Decimal) -> int:
    return int((amount / MINOR_UNIT).to_integral_value(rounding=ROUND_DOWN))


def from_minor_units(units: int) -> Decimal:
    return Decimal(units) * MINOR_UNIT


def is_negligible(amount: Decimal) -> bool:
    """True when the amount is smaller than one minor unit either way."""
    return abs(amount) < MINOR_UNIT


def present(amount: Decimal) -> Decimal:
    """Round to the minor unit for display. Only ever call this at the boundary."""
    rounded = amount.quantize(MINOR_UNIT, rounding=ROUND_HALF_UP)
    if rounded == ZERO:
        # drop the sign of -0.00
        return ZERO.quantize(MINOR_UNIT)
    return rounded


def format_amount(amount: Decimal) -> str:
    return str(present(amount))
