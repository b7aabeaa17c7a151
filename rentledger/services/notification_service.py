"""Notification dispatch after contract activation, receipts and overdue checks.

Notifications run after the financial change has been committed and are
best-effort: a failing sender is logged and never propagates, so it cannot
roll back the state change that triggered it. Delivery (email, chat) lives
behind NotificationSender implementations.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterable, Optional

logger = logging.getLogger(__name__)


class NotificationSender(ABC):
    """Delivery channel for notification events."""

    @abstractmethod
    def send(self, event: str, payload: Dict[str, Any]) -> None:
        """Deliver one event; raising signals a failed delivery."""


class LoggingSender(NotificationSender):
    """Default channel: writes the notification to the log."""

    def send(self, event: str, payload: Dict[str, Any]) -> None:
        details = " ".join(f"{k}={v}" for k, v in payload.items())
        logger.info(f"notification.{event}: {details}")


class NotificationService:
    """Service for dispatching domain notifications to all configured senders."""

    CONTRACT_ACTIVATED = "contract_activated"
    RECEIPT_GENERATED = "receipt_generated"
    OVERDUE_ALERT = "overdue_alert"

    def __init__(self, senders: Optional[Iterable[NotificationSender]] = None):
        """Initialize notification service.

        Args:
            senders: Delivery channels (default: log only)
        """
        self.senders = list(senders) if senders is not None else [LoggingSender()]

    def dispatch(self, event: str, payload: Dict[str, Any]) -> bool:
        """Send an event to every sender.

        Returns:
            True if every sender accepted the event, False if any failed
        """
        delivered = True
        for sender in self.senders:
            try:
                sender.send(event, payload)
            except Exception as e:
                delivered = False
                logger.error(
                    f"Notification {event} failed in {type(sender).__name__}: {e}",
                    exc_info=True,
                )
        return delivered

    def notify_contract_activated(self, contract, scheduled_count: int) -> bool:
        """Notify that a contract was activated and its schedule generated."""
        return self.dispatch(
            self.CONTRACT_ACTIVATED,
            {
                "tenant_id": contract.tenant_id,
                "contract_id": contract.id,
                "renter_email": contract.renter_email,
                "monthly_rent": contract.monthly_rent,
                "currency": contract.currency,
                "scheduled_items": scheduled_count,
            },
        )

    def notify_receipt_generated(self, receipt, event) -> bool:
        """Notify that a payment receipt is ready for distribution."""
        return self.dispatch(
            self.RECEIPT_GENERATED,
            {
                "tenant_id": receipt.tenant_id,
                "receipt_number": receipt.receipt_number,
                "contract_id": receipt.contract_id,
                "payment_event_id": event.id,
                "amount": event.converted_amount,
                "currency": event.contract_currency,
            },
        )

    def notify_overdue(self, tenant_id: int, items: list) -> bool:
        """Alert about scheduled items that just became overdue."""
        if not items:
            return True
        return self.dispatch(
            self.OVERDUE_ALERT,
            {
                "tenant_id": tenant_id,
                "count": len(items),
                "contracts": sorted({item.contract_id for item in items}),
            },
        )


__all__ = ["NotificationSender", "LoggingSender", "NotificationService"]
