"""Contract ORM model: a lease with its monthly rent split into two payable items."""

from datetime import date
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, ForeignKey, Index, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class ContractStatus(str, Enum):
    """Lifecycle state of a contract."""

    DRAFT = "draft"
    ACTIVE = "active"
    CANCELLED = "cancelled"


class ItemTag(str, Enum):
    """The two buckets a monthly rent is split into."""

    A = "A"
    B = "B"


class PaymentMethod(str, Enum):
    """How an item is expected to be (or was) paid."""

    CASH = "cash"
    TRANSFER = "transfer"
    DEPOSIT = "deposit"
    CHECK = "check"
    E_CHECK = "e_check"
    OTHER = "other"
    """Requires a free-text detail describing the method."""


class Contract(Base, BaseModel):
    """Model representing a lease contract.

    item_b is derived (monthly_rent - item_a) and recomputed by the contract
    service on every edit of monthly_rent or item_a; it is stored for
    reporting only and never edited on its own.
    """

    __tablename__ = "contracts"

    tenant_id: Mapped[int] = mapped_column(
        nullable=False,
        index=True,
    )
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"),
        nullable=False,
        index=True,
    )

    # Amounts
    monthly_rent: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
    )
    currency: Mapped[str] = mapped_column(
        String(3),
        nullable=False,
        default="ARS",
        comment="ISO 4217 code the rent and all scheduled items are expressed in",
    )
    item_a: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        default=Decimal("0.00"),
    )
    item_b: Mapped[Decimal] = mapped_column(
        Numeric(12, 2),
        nullable=False,
        comment="Derived: monthly_rent - item_a",
    )

    # Payment method per item
    item_a_method: Mapped[PaymentMethod] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentMethod.TRANSFER,
    )
    item_a_method_detail: Mapped[str | None] = mapped_column(String(200), nullable=True)
    item_b_method: Mapped[PaymentMethod] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentMethod.TRANSFER,
    )
    item_b_method_detail: Mapped[str | None] = mapped_column(String(200), nullable=True)

    # Term
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    status: Mapped[ContractStatus] = mapped_column(
        String(20),
        nullable=False,
        default=ContractStatus.DRAFT,
        index=True,
    )

    # Renter contact (used by notifications only)
    renter_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    renter_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    # Relationships
    property: Mapped["Property"] = relationship(  # noqa: F821
        "Property",
        back_populates="contracts",
    )
    scheduled_items: Mapped[list["ScheduledItem"]] = relationship(  # noqa: F821
        "ScheduledItem",
        back_populates="contract",
    )

    __table_args__ = (Index("idx_contract_tenant_status", "tenant_id", "status"),)

    def item_amount(self, tag: ItemTag) -> Decimal:
        """Amount of item A or B."""
        return self.item_a if ItemTag(tag) == ItemTag.A else self.item_b

    def __repr__(self) -> str:
        return (
            f"<Contract(id={self.id}, tenant_id={self.tenant_id}, property_id={self.property_id}, "
            f"monthly_rent={self.monthly_rent}, currency={self.currency!r}, "
            f"item_a={self.item_a}, item_b={self.item_b}, status={self.status})>"
        )


__all__ = ["Contract", "ContractStatus", "ItemTag", "PaymentMethod"]
