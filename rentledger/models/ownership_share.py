"""Ownership share ORM model: one owner's percentage of a property over a date range."""

from datetime import date
from decimal import Decimal

from sqlalchemy import Date, ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class OwnershipShare(Base, BaseModel):
    """Model representing an owner's fractional interest in a property.

    A share is active on a date when start_date <= date and end_date is
    either empty (open-ended) or >= date. Shares of one property are
    expected to add up to 100 but the sum is not enforced here.
    """

    __tablename__ = "ownership_shares"

    tenant_id: Mapped[int] = mapped_column(
        nullable=False,
        index=True,
    )
    owner_id: Mapped[int] = mapped_column(
        ForeignKey("owners.id"),
        nullable=False,
        index=True,
    )
    property_id: Mapped[int] = mapped_column(
        ForeignKey("properties.id"),
        nullable=False,
        index=True,
    )
    share_percentage: Mapped[Decimal] = mapped_column(
        Numeric(5, 2),
        nullable=False,
        comment="Owner's share of the property income (0-100)",
    )
    start_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
    )
    end_date: Mapped[date | None] = mapped_column(
        Date,
        nullable=True,
        comment="Last day the share is active; empty means currently active",
    )

    # Relationships
    owner: Mapped["Owner"] = relationship(  # noqa: F821
        "Owner",
        back_populates="shares",
    )
    property: Mapped["Property"] = relationship(  # noqa: F821
        "Property",
        back_populates="shares",
    )

    __table_args__ = (Index("idx_share_property_dates", "property_id", "start_date", "end_date"),)

    def is_active_on(self, on_date: date) -> bool:
        """Whether the share participates in a period starting on on_date."""
        if self.start_date > on_date:
            return False
        return self.end_date is None or self.end_date >= on_date

    def __repr__(self) -> str:
        return (
            f"<OwnershipShare(id={self.id}, owner_id={self.owner_id}, "
            f"property_id={self.property_id}, share_percentage={self.share_percentage}, "
            f"start_date={self.start_date}, end_date={self.end_date})>"
        )


__all__ = ["OwnershipShare"]
