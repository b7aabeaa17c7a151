"""Owner ORM model for co-owners receiving rent allocations."""

from sqlalchemy import Index, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from rentledger.models import Base, BaseModel


class Owner(Base, BaseModel):
    """Model representing a property owner within a tenant (management company).

    Owners are resolved per tenant: a share pointing at an owner of another
    tenant is treated as unresolvable during schedule generation.
    """

    __tablename__ = "owners"

    tenant_id: Mapped[int] = mapped_column(
        nullable=False,
        index=True,
        comment="Management company (tenant) this owner belongs to",
    )
    full_name: Mapped[str] = mapped_column(
        String(200),
        nullable=False,
    )
    email: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
    )

    # Relationships
    shares: Mapped[list["OwnershipShare"]] = relationship(  # noqa: F821
        "OwnershipShare",
        back_populates="owner",
    )

    __table_args__ = (Index("idx_owner_tenant_name", "tenant_id", "full_name"),)

    def __repr__(self) -> str:
        return f"<Owner(id={self.id}, tenant_id={self.tenant_id}, full_name={self.full_name!r})>"


__all__ = ["Owner"]
