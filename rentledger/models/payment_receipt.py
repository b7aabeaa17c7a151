"""Payment receipt ORM model."""

from datetime import date
from enum import Enum

from sqlalchemy import Date, ForeignKey, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from rentledger.models import Base, BaseModel


class ReceiptStatus(str, Enum):
    """Receipt rendering status."""

    PENDING = "pending"
    GENERATED = "generated"


class PaymentReceipt(Base, BaseModel):
    """Receipt issued for a single payment event (at most one per event)."""

    __tablename__ = "payment_receipts"

    tenant_id: Mapped[int] = mapped_column(nullable=False, index=True)
    payment_event_id: Mapped[int] = mapped_column(
        ForeignKey("payment_events.id"),
        nullable=False,
        unique=True,
    )
    contract_id: Mapped[int] = mapped_column(
        ForeignKey("contracts.id"),
        nullable=False,
        index=True,
    )
    receipt_number: Mapped[str] = mapped_column(String(40), nullable=False)
    receipt_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[ReceiptStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ReceiptStatus.PENDING,
    )
    body: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "receipt_number", name="uq_receipt_number"),
    )

    def __repr__(self) -> str:
        return (
            f"<PaymentReceipt(id={self.id}, receipt_number={self.receipt_number!r}, "
            f"payment_event_id={self.payment_event_id}, status={self.status})>"
        )


__all__ = ["PaymentReceipt", "ReceiptStatus"]
