"""Exchange rate ORM model - daily local-per-USD quotes by source."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rentledger.models import Base, BaseModel


class RateSourceType(str, Enum):
    """Market the quote was taken from."""

    OFICIAL = "oficial"
    BLUE = "blue"
    MEP = "mep"


class RateDirection(str, Enum):
    """Side of the quote to use."""

    SELL = "sell"
    BUY = "buy"


class ExchangeRate(Base, BaseModel):
    """Model representing a daily exchange-rate quote for a tenant.

    Rates are expressed as local currency units per one base-currency unit
    (e.g. 1450 ARS per USD).
    """

    __tablename__ = "exchange_rates"

    tenant_id: Mapped[int] = mapped_column(nullable=False, index=True)
    rate_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    source_type: Mapped[RateSourceType] = mapped_column(
        String(20),
        nullable=False,
        default=RateSourceType.OFICIAL,
    )
    buy_rate: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)
    sell_rate: Mapped[Decimal] = mapped_column(Numeric(14, 4), nullable=False)

    __table_args__ = (
        UniqueConstraint("tenant_id", "rate_date", "source_type", name="uq_exchange_rate_day"),
    )

    def rate_for(self, direction: RateDirection) -> Decimal:
        """Quote for the requested side."""
        return self.sell_rate if RateDirection(direction) == RateDirection.SELL else self.buy_rate

    def __repr__(self) -> str:
        return (
            f"<ExchangeRate(tenant_id={self.tenant_id}, rate_date={self.rate_date}, "
            f"source_type={self.source_type}, buy={self.buy_rate}, sell={self.sell_rate})>"
        )


__all__ = ["ExchangeRate", "RateDirection", "RateSourceType"]
