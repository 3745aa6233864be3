"""Text formatting helpers for terminal output."""

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "CZK": "Kč"}


def format_money(value: float, currency: str = "USD") -> str:
    """Format an amount with two decimals and its currency, e.g. ``$1,234.50``.

    Currencies without a known symbol are suffixed with their code.
    """
    sign = "-" if value < 0 else ""
    amount = f"{abs(value):,.2f}"
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    if symbol is None:
        return f"{sign}{amount} {currency.upper()}"
    if currency.upper() == "CZK":
        return f"{sign}{amount} {symbol}"
    return f"{sign}{symbol}{amount}"


def format_percent(value: float) -> str:
    """Signed percentage with two decimals: ``+1.25%``, ``-0.40%``."""
    text = f"{value:.2f}"
    return f"{text}%" if text.startswith("-") else f"+{text}%"


def truncate_text(text: str, max_length: int = 100, ellipsis: str = "...") -> str:
    """Truncate text to max_length, appending ellipsis if truncated."""
    if not text:
        return ""
    if len(text) <= max_length:
        return text
    return text[: max_length - len(ellipsis)] + ellipsis
