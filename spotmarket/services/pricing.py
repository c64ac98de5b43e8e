"""
Checkout pricing helpers.

The buyer pays the list price plus the processor fee (3.6%, rounded up).
Amounts are integers in the currency's smallest unit; for zero-decimal
currencies such as JPY that is the whole yen.
"""

# Fee in basis points; integer maths keeps rounding exact
PROCESSOR_FEE_BPS = 360
FIXED_FEE = 0

# Stripe zero-decimal currencies that the marketplace accepts
ZERO_DECIMAL_CURRENCIES = {"jpy", "krw", "vnd"}
_SYMBOLS = {"jpy": "¥", "usd": "$", "eur": "€", "gbp": "£", "krw": "₩", "vnd": "₫"}


def processor_fee(price: int) -> int:
    return -(-price * PROCESSOR_FEE_BPS // 10_000) + FIXED_FEE


def total_with_fee(price: int) -> int:
    return price + processor_fee(price)


def format_price(amount: int, currency: str = "jpy") -> str:
    """format_price(1500) → '¥1,500'; format_price(1999, 'usd') → '$19.99'."""
    code = currency.lower()
    symbol = _SYMBOLS.get(code, code.upper() + " ")
    if code in ZERO_DECIMAL_CURRENCIES:
        return f"{symbol}{amount:,}"
    return f"{symbol}{amount / 100:,.2f}"
