# core/currency.py
import math
from decimal import ROUND_DOWN, Decimal

CURRENCY_SYMBOL = "$"
THOUSANDS_SEP = "."


def format_price(amount: int | float) -> str:
    """
    Format an amount as Argentine pesos without decimals: 6199999 -> "$6.199.999".

    Fractions are dropped, not rounded, so 6199999 / 12 renders as "$516.666".
    """
    if isinstance(amount, float) and not math.isfinite(amount):
        raise ValueError(f"Cannot format non-finite amount {amount!r}")

    whole = int(Decimal(str(amount)).quantize(Decimal(1), rounding=ROUND_DOWN))
    sign = "-" if whole < 0 else ""
    grouped = f"{abs(whole):,}".replace(",", THOUSANDS_SEP)
    return f"{sign}{CURRENCY_SYMBOL}{grouped}"
