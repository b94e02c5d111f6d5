from __future__ import annotations

from viyahe.core.config import settings
from viyahe.domain.entities.flight import Price

CURRENCY_SYMBOLS = {"USD": "$", "EUR": "€", "GBP": "£", "JPY": "¥", "PHP": "₱"}


def get_markup_percent() -> float:
    percent = settings.DEFAULT_MARKUP_PERCENT
    return percent if percent >= 0 else 10.0


def format_currency(cents: int, currency: str = "USD") -> str:
    """Format an amount in cents, e.g. 123450 USD -> "$1,234.50"."""
    symbol = CURRENCY_SYMBOLS.get(currency.upper())
    sign = "-" if cents < 0 else ""
    amount = f"{abs(cents) / 100:,.2f}"
    if symbol:
        return f"{sign}{symbol}{amount}"
    return f"{sign}{currency.upper()} {amount}"


def calculate_markup(price_in_cents: int, markup_percent: float | None = None) -> int:
    percent = get_markup_percent() if markup_percent is None else markup_percent
    return round(price_in_cents * (percent / 100))


def apply_markup(price_in_cents: int, markup_percent: float | None = None) -> int:
    return price_in_cents + calculate_markup(price_in_cents, markup_percent)


def make_price(amount: int, currency: str = "USD") -> Price:
    return Price(amount=amount, currency=currency, display_amount=format_currency(amount, currency))


def create_price_with_markup(
    amount_in_cents: int,
    currency: str,
    markup_percent: float | None = None,
) -> tuple[Price, Price]:
    """Returns (original_price, price_with_markup)."""
    return make_price(amount_in_cents, currency), make_price(apply_markup(amount_in_cents, markup_percent), currency)


def calculate_total_for_passengers(price_per_passenger: int, passenger_count: int) -> int:
    return price_per_passenger * passenger_count


def calculate_per_passenger_price(total_price: int, passenger_count: int) -> int:
    if passenger_count <= 0:
        return 0
    return round(total_price / passenger_count)
