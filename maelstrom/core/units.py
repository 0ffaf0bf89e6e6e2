"""
Conversions between minimal-denomination integers and decimal strings.

Only used at the edges (logs, activity text, parsing user input); the engine
itself works in integers.
"""

from decimal import Decimal, InvalidOperation, localcontext


def format_units(amount: int, decimals: int = 18) -> str:
    """Render ``amount`` minimal units as a plain decimal string without trailing zeros."""
    negative = amount < 0
    whole, fraction = divmod(abs(amount), 10 ** decimals)
    text = str(whole)
    if decimals and fraction:
        text += "." + str(fraction).rjust(decimals, "0").rstrip("0")
    return f"-{text}" if negative else text


def parse_units(value: str, decimals: int = 18) -> int:
    """
    Parse a decimal string into minimal units.

    Raises:
        ValueError: If the string is not a number or has more fractional
            digits than ``decimals``
    """
    try:
        with localcontext(prec=100):
            number = Decimal(str(value).strip())
    except InvalidOperation as e:
        raise ValueError(f"Invalid amount: {value!r}") from e
    if not number.is_finite():
        raise ValueError(f"Invalid amount: {value!r}")
    with localcontext(prec=100):
        scaled = number.scaleb(decimals)
        if scaled != scaled.to_integral_value():
            raise ValueError(f"Amount {value!r} has more than {decimals} decimal places")
        return int(scaled)
