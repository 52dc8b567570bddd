"""
Module: stockout_kernel.db.types
Responsibility: Annotated type aliases and utility functions for money and
    quantity columns.  Centralizes precision and rounding so that every model
    and service uses identical type definitions.
Architecture position: Kernel > DB.  May be imported by models/, domain/,
    services/, and selectors/.  MUST NOT import from any of those layers.

Invariants enforced:
    No floats anywhere in the kernel.  All monetary amounts and quantities use
    Decimal with explicit precision.  round_money() is the ONLY sanctioned
    rounding function for monetary values.
"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from sqlalchemy import Numeric


# Stock quantity column: 20 digits total, 4 decimal places (loose goods by weight)
QUANTITY_PLACES = 4
QUANTITY_TYPE = Numeric(20, QUANTITY_PLACES)

DEFAULT_MONEY_DECIMAL_PLACES = 2
DEFAULT_ROUNDING = ROUND_HALF_UP

ZERO = Decimal("0")


def to_decimal(value: object) -> Decimal:
    """
    Convert a request value to Decimal without going through float.

    Raises:
        ValueError: If value is a float, a bool, or not numeric.
    """
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool) or isinstance(value, float):
        raise ValueError(f"Refusing lossy conversion of {value!r} to Decimal")
    try:
        return Decimal(str(value))
    except (InvalidOperation, TypeError) as exc:
        raise ValueError(f"Not a number: {value!r}") from exc


def round_money(
    value: Decimal,
    decimal_places: int = DEFAULT_MONEY_DECIMAL_PLACES,
    rounding: str = DEFAULT_ROUNDING,
) -> Decimal:
    """
    Round a monetary value to specified decimal places.

    This is the ONLY sanctioned rounding function for monetary values in the
    kernel.

    Args:
        value: The Decimal value to round.
        decimal_places: Number of decimal places to round to.
        rounding: Rounding mode (default: ROUND_HALF_UP).

    Returns:
        Rounded Decimal value.
    """
    quantize_str = "1" if decimal_places == 0 else "0." + "0" * decimal_places
    return value.quantize(Decimal(quantize_str), rounding=rounding)
