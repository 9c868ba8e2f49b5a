"""
Rounding and currency formatting.

All dashboard figures are Indonesian Rupiah with no decimal places.
"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Union

Number = Union[int, float, Decimal]

CURRENCY_CODE = "IDR"


def round_half_up(value: Number, places: int = 0) -> Union[int, float]:
    """Round halves away from zero.

    Returns an int for ``places == 0`` and a float otherwise.
    """
    exponent = Decimal(1).scaleb(-places)
    rounded = Decimal(str(value)).quantize(exponent, rounding=ROUND_HALF_UP)
    if places == 0:
        return int(rounded)
    return float(rounded)


def group_thousands(amount: Number) -> str:
    """Format a whole amount with id-ID grouping (``1.234.567``)."""
    whole = round_half_up(amount)
    return f"{whole:,}".replace(",", ".")


def format_idr(amount: Number, currency: str = CURRENCY_CODE) -> str:
    """Format an amount as ``IDR 1.234.567``."""
    return f"{currency} {group_thousands(amount)}"


def percentage(part: Number, whole: Number, places: int = 1) -> Union[int, float]:
    """Share of ``part`` in ``whole`` as a rounded percentage, 0 when whole is 0."""
    if not whole:
        return 0
    return round_half_up(Decimal(str(part)) * 100 / Decimal(str(whole)), places)
