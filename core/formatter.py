"""
formatter.py -- Display formatting for prices and mileage.

Registered as Jinja2 filters by web/templating.py; also usable directly.
"""

from decimal import Decimal, InvalidOperation
from typing import Union

Number = Union[int, float, Decimal, str, None]


def _to_decimal(value: Number) -> Decimal:
    if value is None or value == "":
        return Decimal(0)
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal(0)


def format_number(value: Number) -> str:
    """Group thousands the en-US way: 12345.5 -> '12,345.5', 30000 -> '30,000'."""
    d = _to_decimal(value)
    if d == d.to_integral_value():
        return f"{int(d):,}"
    return f"{d.normalize():,f}"


def format_usd(value: Number) -> str:
    """Currency display: 25999 -> '$25,999.00'. Negative values get a leading minus."""
    d = _to_decimal(value).quantize(Decimal("0.01"))
    sign = "-" if d < 0 else ""
    return f"{sign}${abs(d):,.2f}"
