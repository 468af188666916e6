"""
Number Formatting

Spanish (es-ES) number and currency formatting used in labels and reports.
"""

from decimal import ROUND_HALF_UP, Decimal

CURRENCY_SYMBOLS = {"EUR": "€", "USD": "US$", "GBP": "GB£"}


def format_number(value: Decimal | float | int, min_fraction: int = 0, max_fraction: int = 2) -> str:
    """
    Format like Intl.NumberFormat("es-ES").

    Comma decimal separator, dot thousands separator applied from five
    integer digits on (es-ES does not group four-digit numbers).
    """
    quantum = Decimal(1).scaleb(-max_fraction)
    quantized = Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP)
    sign = "-" if quantized < 0 else ""

    integer, _, fraction = f"{abs(quantized):f}".partition(".")
    fraction = fraction.rstrip("0").ljust(min_fraction, "0")

    if len(integer) > 4:
        groups = []
        while integer:
            groups.insert(0, integer[-3:])
            integer = integer[:-3]
        integer = ".".join(groups)

    if fraction:
        return f"{sign}{integer},{fraction}"
    return f"{sign}{integer}"


def format_currency(value: Decimal | float | int, currency: str = "EUR") -> str:
    symbol = CURRENCY_SYMBOLS.get(currency, currency)
    return f"{format_number(value, min_fraction=2, max_fraction=2)} {symbol}"


def format_hours(value: Decimal | float | int) -> str:
    return format_number(value, min_fraction=2, max_fraction=2)
