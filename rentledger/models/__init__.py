"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
    )


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from rentledger.models.contract import (  # noqa: E402
    Contract,
    ContractStatus,
    ItemTag,
    PaymentMethod,
)
from rentledger.models.exchange_rate import ExchangeRate, RateDirection, RateSourceType  # noqa: E402
from rentledger.models.owner import Owner  # noqa: E402
from rentledger.models.ownership_share import OwnershipShare  # noqa: E402
from rentledger.models.payment_event import PaymentEvent  # noqa: E402
from rentledger.models.payment_receipt import PaymentReceipt, ReceiptStatus  # noqa: E402
from rentledger.models.property import Property  # noqa: E402
from rentledger.models.scheduled_item import ScheduledItem, ScheduleStatus  # noqa: E402

__all__ = [
    "Base",
    "BaseModel",
    "Contract",
    "ContractStatus",
    "ItemTag",
    "PaymentMethod",
    "ExchangeRate",
    "RateDirection",
    "RateSourceType",
    "Owner",
    "OwnershipShare",
    "PaymentEvent",
    "PaymentReceipt",
    "ReceiptStatus",
    "Property",
    "ScheduledItem",
    "ScheduleStatus",
]
