"""
Price text parsing shared by the structured-data extractor and resolvers.
"""
import math
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Optional, Tuple


NUMBER_RE = re.compile(r"\d+(?:[.,']\d+)*")

AMOUNT = r"\d{1,3}(?:[,.]\d{3})+(?:[.,]\d{1,2})?|\d+(?:[.,]\d{1,2})?"
SYMBOLS = r"US\$|CA\$|C\$|AU\$|A\$|NZ\$|HK\$|R\$|[$€£¥₹₽₩]"
CODES = r"USD|EUR|GBP|CAD|AUD|NZD|JPY|INR|CHF|MXN|BMD"

CURRENCY_AMOUNT_RE = re.compile(
    rf"(?P<prefix>{SYMBOLS}|\b(?:{CODES}))\s?(?P<amount>{AMOUNT})"
    rf"|(?P<amount2>{AMOUNT})\s?(?P<suffix>€|\b(?:{CODES})\b)"
)

SYMBOL_CURRENCIES = {
    "US$": "USD",
    "$": "USD",
    "CA$": "CAD",
    "C$": "CAD",
    "AU$": "AUD",
    "A$": "AUD",
    "NZ$": "NZD",
    "HK$": "HKD",
    "R$": "BRL",
    "€": "EUR",
    "£": "GBP",
    "¥": "JPY",
    "₹": "INR",
    "₽": "RUB",
    "₩": "KRW",
}


def _normalize_number(token: str) -> str:
    """Turn a localized number token into a plain decimal string."""
    token = token.replace("'", "")

    if "," in token and "." in token:
        # whichever separator comes last is the decimal point
        if token.rfind(",") > token.rfind("."):
            return token.replace(".", "").replace(",", ".")
        return token.replace(",", "")

    if "," in token:
        parts = token.split(",")
        if len(parts) == 2 and len(parts[1]) in (1, 2):
            return token.replace(",", ".")
        return token.replace(",", "")

    if token.count(".") > 1:
        parts = token.split(".")
        if len(parts[-1]) in (1, 2):
            return "".join(parts[:-1]) + "." + parts[-1]
        return "".join(parts)

    return token


def parse_price(value: Any) -> Optional[float]:
    """
    Parse a price from a number or noisy text.

    Returns None for anything that is not a positive finite amount; a
    zero price is treated as "no price", never as "free".
    """
    if value is None or isinstance(value, bool):
        return None

    try:
        if isinstance(value, (int, float, Decimal)):
            amount = Decimal(str(value))
        else:
            match = NUMBER_RE.search(str(value))
            if not match:
                return None
            amount = Decimal(_normalize_number(match.group()))
    except (InvalidOperation, ValueError):
        return None

    if not amount.is_finite() or amount <= 0:
        return None
    # huge digit runs are finite Decimals but overflow to float('inf')
    price = float(amount)
    if not math.isfinite(price):
        return None
    return price


def currency_from_marker(marker: Optional[str]) -> Optional[str]:
    """Map a currency symbol or ISO code to an ISO code."""
    if not marker:
        return None
    marker = marker.strip()
    if marker in SYMBOL_CURRENCIES:
        return SYMBOL_CURRENCIES[marker]
    if re.fullmatch(r"[A-Za-z]{3}", marker):
        return marker.upper()
    return None


def find_price_in_text(text: Optional[str]) -> Optional[Tuple[float, Optional[str]]]:
    """First currency-qualified amount in free text, as (price, currency)."""
    if not text:
        return None
    for match in CURRENCY_AMOUNT_RE.finditer(text):
        amount = match.group("amount") or match.group("amount2")
        price = parse_price(amount)
        if price is not None:
            marker = match.group("prefix") or match.group("suffix")
            return price, currency_from_marker(marker)
    return None
