"""Locale helpers for currency amounts and dates.

Uses babel; the locale comes from the LOCALE setting (default es_AR).
Amounts always carry an explicit currency code because a single tenant
handles rent in local currency and payments in USD side by side.
"""

import logging
from datetime import date
from decimal import Decimal

from babel import Locale, UnknownLocaleError
from babel.dates import format_date as babel_format_date
from babel.numbers import format_currency as babel_format_currency
from babel.numbers import format_decimal as babel_format_decimal
from babel.numbers import parse_decimal as babel_parse_decimal

from rentledger.services.config import get_settings

logger = logging.getLogger(__name__)

# Default locale if LOCALE setting is invalid
DEFAULT_LOCALE = "es_AR"


def get_locale() -> str:
    """Get configured locale with validation and fallback.

    Returns:
        Valid locale string (e.g., 'es_AR')
    """
    locale_str = get_settings().locale
    try:
        Locale.parse(locale_str)
        return locale_str
    except (UnknownLocaleError, ValueError) as e:
        logger.warning(f"Invalid LOCALE '{locale_str}': {e}. Falling back to '{DEFAULT_LOCALE}'")
        return DEFAULT_LOCALE


def format_amount(amount: Decimal, currency: str, include_symbol: bool = True) -> str:
    """Format monetary amount according to locale.

    Args:
        amount: Amount to format
        currency: ISO 4217 currency code
        include_symbol: Whether to include currency symbol (default True)

    Returns:
        Formatted currency string
    """
    if include_symbol:
        return babel_format_currency(amount, currency, locale=get_locale())
    return babel_format_decimal(amount, format="#,##0.00", locale=get_locale())


def format_local_date(value: date, format: str = "medium") -> str:
    """Format a date according to locale."""
    return babel_format_date(value, format=format, locale=get_locale())


def parse_decimal(value: str) -> Decimal:
    """Parse locale-formatted decimal string to Decimal.

    Args:
        value: Locale-formatted number string (e.g., '1.234,56' for es_AR)

    Raises:
        NumberFormatError: If value cannot be parsed
    """
    return babel_parse_decimal(value.strip(), locale=get_locale())


__all__ = [
    "DEFAULT_LOCALE",
    "get_locale",
    "format_amount",
    "format_local_date",
    "parse_decimal",
]
