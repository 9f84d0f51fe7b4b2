from __future__ import annotations
from typing import Dict, Optional

# "PUNDS" is the code the form has always sent for pounds sterling; kept as is.
CURRENCY_SYMBOLS: Dict[str, str] = {
    "USD": "$",
    "KSH": "KSh ",
    "TZS": "TSh ",
    "EURO": "€",
    "PUNDS": "£",
}

# USD value of one unit of each code (static, no live rates)
STATIC_RATES_TO_USD: Dict[str, float] = {
    "USD": 1.0,
    "KSH": 1 / 155.0,
    "TZS": 1 / 2350.0,
    "EURO": 1.08,
    "PUNDS": 1.25,
}


def usd_rate(code: Optional[str]) -> float:
    # unknown codes count as USD
    return STATIC_RATES_TO_USD.get(code or "", 0.0) or 1.0


def convert_amount(amount: float, from_code: Optional[str], to_code: Optional[str]) -> float:
    """Convert through USD. Same or missing code -> amount unchanged."""
    if not from_code or not to_code or from_code == to_code:
        return amount
    return amount * usd_rate(from_code) / usd_rate(to_code)


def get_symbol(code: Optional[str]) -> str:
    return CURRENCY_SYMBOLS.get(code or "", "")


def format_money(amount: float, code: Optional[str]) -> str:
    return f"{get_symbol(code)}{amount:.2f}"
