"""Property ORM model for rented units shared between co-owners."""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class Property(Base, BaseModel):
    """Model representing a physical property under management.

    Ownership is not stored on the property itself: each co-owner's
    percentage lives in OwnershipShare rows with their own activity window,
    so the owner set can change while a contract is running.
    """

    __tablename__ = "properties"

    tenant_id: Mapped[int] = mapped_column(
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(150),
        nullable=False,
    )
    address: Mapped[str | None] = mapped_column(
        String(300),
        nullable=True,
    )

    # Relationships
    shares: Mapped[list["OwnershipShare"]] = relationship(  # noqa: F821
        "OwnershipShare",
        back_populates="property",
        cascade="all, delete-orphan",
    )
    contracts: Mapped[list["Contract"]] = relationship(  # noqa: F821
        "Contract",
        back_populates="property",
    )

    __table_args__ = (Index("idx_property_tenant_name", "tenant_id", "name"),)

    def __repr__(self) -> str:
        return f"<Property(id={self.id}, tenant_id={self.tenant_id}, name={self.name!r})>"


__all__ = ["Property"]
