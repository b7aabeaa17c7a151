"""Payment event ORM model - append-only record of one payment against a scheduled item."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class PaymentEvent(Base, BaseModel):
    """One actual payment transaction.

    Events are never updated or deleted; corrections are new events. The
    only column that may change is scheduled_item_id, when a schedule
    regeneration moves the event onto the replacement item.

    Attributes:
        paid_amount: Amount as paid, in payment_currency
        converted_amount: Amount applied to the balance, in contract_currency
        exchange_rate: Rate used for the conversion (None when currencies match)
        resulting_status: 'paid' when this event cleared the balance, else 'partial'
    """

    __tablename__ = "payment_events"

    tenant_id: Mapped[int] = mapped_column(nullable=False, index=True)
    scheduled_item_id: Mapped[int] = mapped_column(
        ForeignKey("scheduled_items.id"),
        nullable=False,
        index=True,
    )
    contract_id: Mapped[int] = mapped_column(
        ForeignKey("contracts.id"),
        nullable=False,
        index=True,
    )

    paid_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    paid_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    payment_currency: Mapped[str] = mapped_column(String(3), nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    payment_method_detail: Mapped[str | None] = mapped_column(String(200), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Currency normalization
    exchange_rate: Mapped[Decimal | None] = mapped_column(Numeric(14, 4), nullable=True)
    converted_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    contract_currency: Mapped[str] = mapped_column(String(3), nullable=False)

    resulting_status: Mapped[str] = mapped_column(String(20), nullable=False)

    # Relationships
    scheduled_item: Mapped["ScheduledItem"] = relationship(  # noqa: F821
        "ScheduledItem",
        back_populates="events",
        foreign_keys=[scheduled_item_id],
    )

    __table_args__ = (Index("idx_payment_event_contract_date", "contract_id", "paid_date"),)

    def __repr__(self) -> str:
        return (
            f"<PaymentEvent(id={self.id}, scheduled_item_id={self.scheduled_item_id}, "
            f"paid_amount={self.paid_amount} {self.payment_currency}, "
            f"converted_amount={self.converted_amount} {self.contract_currency}, "
            f"paid_date={self.paid_date}, resulting_status={self.resulting_status!r})>"
        )


__all__ = ["PaymentEvent"]
