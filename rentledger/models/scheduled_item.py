"""Scheduled item ORM model: one expected payment line per period, item and owner."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, Integer, Numeric, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class ScheduleStatus(str, Enum):
    """Reconciliation status of a scheduled item."""

    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"
    OVERDUE = "overdue"


class ScheduledItem(Base, BaseModel):
    """Model representing one expected payment line.

    Invariant: original_amount == accumulated_paid_amount + expected_amount
    (within 0.01). Balances are only changed by the ledger service through a
    single conditional UPDATE; regeneration replaces rows wholesale by
    writing a new schedule_version and deleting the previous one.
    """

    __tablename__ = "scheduled_items"

    tenant_id: Mapped[int] = mapped_column(
        nullable=False,
        index=True,
    )
    contract_id: Mapped[int] = mapped_column(
        ForeignKey("contracts.id"),
        nullable=False,
        index=True,
    )
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("owners.id"),
        nullable=False,
        index=True,
    )
    item: Mapped[str] = mapped_column(
        String(1),
        nullable=False,
        comment="Item tag: 'A' or 'B'",
    )
    period_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
    )
    owner_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
    )

    # Balances
    original_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Item amount x owner share; immutable once set",
    )
    expected_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Outstanding balance",
    )
    accumulated_paid_amount: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    status: Mapped[ScheduleStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ScheduleStatus.PENDING,
        index=True,
    )

    # Event that brought the balance to zero (set only on full payment)
    completing_event_id: Mapped[int | None] = mapped_column(
        ForeignKey("payment_events.id", use_alter=True, name="fk_scheduled_item_completing_event"),
        nullable=True,
    )
    schedule_version: Mapped[int] = mapped_column(
        Integer,
        nullable=False,
        default=1,
        comment="Incremented on every regeneration of the contract schedule",
    )

    # Relationships
    contract: Mapped["Contract"] = relationship(  # noqa: F821
        "Contract",
        back_populates="scheduled_items",
    )
    owner: Mapped["Owner"] = relationship("Owner")  # noqa: F821
    events: Mapped[list["PaymentEvent"]] = relationship(  # noqa: F821
        "PaymentEvent",
        back_populates="scheduled_item",
        foreign_keys="PaymentEvent.scheduled_item_id",
        order_by="PaymentEvent.paid_date",
    )

    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "contract_id",
            "item",
            "period_date",
            "owner_id",
            "schedule_version",
            name="uq_scheduled_item_key",
        ),
        Index("idx_scheduled_item_contract_period", "contract_id", "period_date"),
    )

    @property
    def key(self) -> tuple[date, str, int]:
        """Matching key used to carry payments across regenerations."""
        return (self.period_date, self.item, self.owner_id)

    def __repr__(self) -> str:
        return (
            f"<ScheduledItem(id={self.id}, contract_id={self.contract_id}, item={self.item!r}, "
            f"period_date={self.period_date}, owner_id={self.owner_id}, "
            f"original_amount={self.original_amount}, expected_amount={self.expected_amount}, "
            f"accumulated_paid_amount={self.accumulated_paid_amount}, status={self.status})>"
        )


__all__ = ["ScheduledItem", "ScheduleStatus"]
