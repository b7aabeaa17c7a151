"""Receipt service: one numbered receipt per payment event."""

import logging
from datetime import date
from typing import Optional

from sqlalchemy import func
from sqlalchemy.orm import Session

from rentledger.models import Contract, PaymentEvent, PaymentReceipt, Property, ReceiptStatus, ScheduledItem
from rentledger.services.errors import NotFound
from rentledger.services.locale_service import format_amount, format_local_date
from rentledger.services.notification_service import NotificationService

logger = logging.getLogger(__name__)


def receipt_number(tenant_id: int, sequence: int) -> str:
    """Format a receipt number, e.g. REC-7-000042."""
    return f"REC-{tenant_id}-{sequence:06d}"


class ReceiptService:
    """Service for generating payment receipts."""

    def __init__(self, db: Session, notifications: Optional[NotificationService] = None):
        self.db = db
        self.notifications = notifications or NotificationService()

    def get_receipt(self, tenant_id: int, payment_event_id: int) -> Optional[PaymentReceipt]:
        return (
            self.db.query(PaymentReceipt)
            .filter_by(tenant_id=tenant_id, payment_event_id=payment_event_id)
            .first()
        )

    def generate_receipt(
        self,
        tenant_id: int,
        payment_event_id: int,
        receipt_date: Optional[date] = None,
    ) -> PaymentReceipt:
        """Generate the receipt of a payment event.

        Idempotent: an event that already has a generated receipt returns it
        unchanged and no notification is sent again.

        Args:
            tenant_id: Tenant scope
            payment_event_id: Payment event to document
            receipt_date: Issue date (default: today)

        Returns:
            PaymentReceipt with status 'generated'

        Raises:
            NotFound: If the event does not exist for this tenant
        """
        event = self.db.query(PaymentEvent).filter_by(id=payment_event_id, tenant_id=tenant_id).first()
        if event is None:
            raise NotFound("payment event", payment_event_id, tenant_id)

        receipt = self.get_receipt(tenant_id, payment_event_id)
        if receipt is not None and receipt.status == ReceiptStatus.GENERATED.value:
            logger.info(f"Receipt {receipt.receipt_number} already generated for event {payment_event_id}")
            return receipt

        if receipt is None:
            sequence = (
                self.db.query(func.count(PaymentReceipt.id)).filter(PaymentReceipt.tenant_id == tenant_id).scalar()
            ) + 1
            receipt = PaymentReceipt(
                tenant_id=tenant_id,
                payment_event_id=event.id,
                contract_id=event.contract_id,
                receipt_number=receipt_number(tenant_id, sequence),
                receipt_date=receipt_date or date.today(),
                status=ReceiptStatus.PENDING.value,
            )
            self.db.add(receipt)

        receipt.body = self.render_body(receipt, event)
        receipt.status = ReceiptStatus.GENERATED.value
        self.db.commit()
        self.db.refresh(receipt)
        logger.info(f"Generated receipt {receipt.receipt_number} for payment event {event.id}")

        self.notifications.notify_receipt_generated(receipt, event)
        return receipt

    def render_body(self, receipt: PaymentReceipt, event: PaymentEvent) -> str:
        """Render the plain-text receipt with locale-formatted amounts."""
        item = self.db.get(ScheduledItem, event.scheduled_item_id)
        contract = self.db.get(Contract, event.contract_id)
        prop = self.db.get(Property, contract.property_id) if contract is not None else None

        lines = [
            f"Receipt {receipt.receipt_number}",
            f"Date: {format_local_date(receipt.receipt_date)}",
        ]
        if contract is not None:
            lines.append(f"Renter: {contract.renter_name or '-'}")
        if prop is not None:
            lines.append(f"Property: {prop.name}")
        if item is not None:
            lines.append(f"Period: {item.period_date.strftime('%m/%Y')} - item {item.item}")
        lines.append(f"Paid on: {format_local_date(event.paid_date)}")
        lines.append(f"Amount: {format_amount(event.paid_amount, event.payment_currency)}")
        if event.exchange_rate is not None:
            lines.append(f"Exchange rate: {event.exchange_rate}")
            lines.append(f"Applied: {format_amount(event.converted_amount, event.contract_currency)}")
        lines.append(f"Method: {event.payment_method}")
        if event.payment_method_detail:
            lines.append(f"Detail: {event.payment_method_detail}")
        if event.reference_number:
            lines.append(f"Reference: {event.reference_number}")
        lines.append(f"Status: {event.resulting_status}")
        return "\n".join(lines)


__all__ = ["ReceiptService", "receipt_number"]
