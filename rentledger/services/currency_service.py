"""Currency normalization for payments made in a currency other than the contract's.

Convention (fixed per deployment through BASE_CURRENCY, default USD):
rates are quoted as local units per one base unit, so
    local -> base: amount / rate
    base -> local: amount * rate
Pairs that do not involve the base currency are rejected.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal
from typing import NamedTuple, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentledger.models.exchange_rate import ExchangeRate, RateDirection, RateSourceType
from rentledger.services.config import get_settings
from rentledger.services.errors import MissingExchangeRate, UnsupportedConversion
from rentledger.services.split_service import to_money

logger = logging.getLogger(__name__)


class ConversionResult(NamedTuple):
    """Both sides of a conversion, so reports never lose the original figure."""

    original_amount: Decimal
    original_currency: str
    converted_amount: Decimal
    converted_currency: str
    rate: Optional[Decimal]  # None when no conversion was needed


class ExchangeRateProvider(ABC):
    """Exchange-rate collaborator.

    Implementations return None when no rate is available; the caller then
    falls back to manual rate entry.
    """

    @abstractmethod
    def lookup_rate(
        self,
        tenant_id: int,
        on_date: date,
        source_type: str,
        direction: str,
    ) -> Optional[Decimal]:
        """Rate for on_date (or the latest earlier quote), or None."""


class DatabaseExchangeRateProvider(ExchangeRateProvider):
    """Rates stored in the exchange_rates table."""

    def __init__(self, db: Session):
        self.db = db

    def lookup_rate(
        self,
        tenant_id: int,
        on_date: date,
        source_type: str = RateSourceType.OFICIAL.value,
        direction: str = RateDirection.SELL.value,
    ) -> Optional[Decimal]:
        """Rate for on_date, or the most recent earlier quote of the same source.

        Returns:
            Rate as Decimal, or None if the tenant has no quote on or before on_date
        """
        source = RateSourceType(source_type).value
        try:
            quote = (
                self.db.query(ExchangeRate)
                .filter(
                    ExchangeRate.tenant_id == tenant_id,
                    ExchangeRate.source_type == source,
                    ExchangeRate.rate_date <= on_date,
                )
                .order_by(ExchangeRate.rate_date.desc())
                .first()
            )
        except SQLAlchemyError:
            # Leave the session usable for the caller's own writes
            self.db.rollback()
            raise
        if quote is None:
            return None
        return Decimal(str(quote.rate_for(RateDirection(direction))))

    def save_rate(
        self,
        tenant_id: int,
        rate_date: date,
        buy_rate: Decimal,
        sell_rate: Decimal,
        source_type: str = RateSourceType.OFICIAL.value,
    ) -> ExchangeRate:
        """Insert or replace the quote of one day and source.

        Raises:
            ValueError: If either rate is not positive
        """
        if Decimal(str(buy_rate)) <= 0 or Decimal(str(sell_rate)) <= 0:
            raise ValueError(f"Exchange rates must be positive (buy={buy_rate}, sell={sell_rate})")

        source = RateSourceType(source_type).value
        quote = (
            self.db.query(ExchangeRate)
            .filter_by(tenant_id=tenant_id, rate_date=rate_date, source_type=source)
            .first()
        )
        if quote is None:
            quote = ExchangeRate(tenant_id=tenant_id, rate_date=rate_date, source_type=source)
            self.db.add(quote)
        quote.buy_rate = Decimal(str(buy_rate))
        quote.sell_rate = Decimal(str(sell_rate))
        self.db.commit()
        self.db.refresh(quote)
        logger.info(f"Saved exchange rate: tenant_id={tenant_id}, date={rate_date}, source={source}")
        return quote


class CurrencyService:
    """Converts amounts between a local currency and the base currency."""

    def __init__(
        self,
        provider: Optional[ExchangeRateProvider] = None,
        base_currency: Optional[str] = None,
    ):
        """Initialize currency service.

        Args:
            provider: Exchange-rate collaborator for rate suggestions (optional)
            base_currency: Overrides the BASE_CURRENCY setting
        """
        self.provider = provider
        self.base_currency = (base_currency or get_settings().base_currency).upper()

    def convert(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        rate: Optional[Decimal] = None,
    ) -> ConversionResult:
        """Convert amount from one currency to another.

        Args:
            amount: Amount in from_currency
            from_currency: Source currency code
            to_currency: Target currency code
            rate: Local units per base unit; required when currencies differ

        Returns:
            ConversionResult with original and converted figures

        Raises:
            MissingExchangeRate: If currencies differ and rate is absent or not positive
            UnsupportedConversion: If neither currency is the base currency
        """
        source = from_currency.upper()
        target = to_currency.upper()
        original = to_money(amount)

        if source == target:
            return ConversionResult(original, source, original, target, None)

        if rate is None:
            raise MissingExchangeRate(source, target)
        rate = Decimal(str(rate))
        if rate <= 0:
            raise MissingExchangeRate(source, target, rate)

        if target == self.base_currency:
            converted = to_money(original / rate)
        elif source == self.base_currency:
            converted = to_money(original * rate)
        else:
            raise UnsupportedConversion(source, target, self.base_currency)

        logger.debug(f"Converted {original} {source} -> {converted} {target} at rate {rate}")
        return ConversionResult(original, source, converted, target, rate)

    def suggest_rate(
        self,
        tenant_id: int,
        on_date: date,
        source_type: Optional[str] = None,
        direction: Optional[str] = None,
    ) -> Optional[Decimal]:
        """Look up a suggested rate; never raises.

        A missing provider, a missing quote or a failed lookup all return None
        so the caller can ask for a manual rate instead.
        """
        if self.provider is None:
            return None

        settings = get_settings()
        source_type = source_type or settings.default_rate_source
        direction = direction or settings.default_rate_direction
        try:
            rate = self.provider.lookup_rate(tenant_id, on_date, source_type, direction)
        except (SQLAlchemyError, ValueError) as e:
            logger.warning(
                f"Exchange rate lookup failed for tenant_id={tenant_id}, date={on_date}, "
                f"source={source_type}: {e}. Falling back to manual entry"
            )
            return None

        if rate is None:
            logger.info(f"No exchange rate on or before {on_date} for tenant_id={tenant_id}, source={source_type}")
        return rate


__all__ = [
    "ConversionResult",
    "ExchangeRateProvider",
    "DatabaseExchangeRateProvider",
    "CurrencyService",
]
