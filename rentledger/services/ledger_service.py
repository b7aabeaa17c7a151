"""Payment ledger: records payments against scheduled items and keeps balances reconciled.

Balance updates are a single conditional UPDATE guarded by
expected_amount >= applied amount, so two concurrent payments on the same
item can never both pass on a stale balance.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import List, NamedTuple, Optional

from sqlalchemy import case, func, update
from sqlalchemy.orm import Session

from rentledger.models import Contract, PaymentEvent, PaymentMethod, ScheduledItem, ScheduleStatus
from rentledger.services.config import get_settings
from rentledger.services.currency_service import ConversionResult, CurrencyService
from rentledger.services.errors import (
    ExcessPayment,
    InvalidDate,
    InvalidPayment,
    MissingMethod,
    NotFound,
)
from rentledger.services.split_service import to_money

logger = logging.getLogger(__name__)


class LedgerResult(NamedTuple):
    """Scheduled item after the payment and the event that was appended."""

    item: ScheduledItem
    event: PaymentEvent


class Reconciliation(NamedTuple):
    """Stored balance of an item compared with the sum of its events."""

    scheduled_item_id: int
    original_amount: Decimal
    accumulated_paid_amount: Decimal
    expected_amount: Decimal
    events_total: Decimal
    event_count: int
    balanced: bool  # original == accumulated + expected
    matches_events: bool  # accumulated == sum of events


def validate_method(method: Optional[str], detail: Optional[str] = None) -> PaymentMethod:
    """Parse a payment method tag.

    Raises:
        MissingMethod: If the method is empty, unknown, or 'other' without a detail
    """
    if method is None or not str(method).strip():
        raise MissingMethod(method)
    try:
        parsed = PaymentMethod(str(method).strip().lower())
    except ValueError:
        raise MissingMethod(method, "unknown payment method") from None
    if parsed == PaymentMethod.OTHER and not (detail and detail.strip()):
        raise MissingMethod(method, "payment method 'other' requires a detail")
    return parsed


class LedgerService:
    """Core payment recording service."""

    def __init__(self, db: Session, currency: Optional[CurrencyService] = None):
        """Initialize ledger service.

        Args:
            db: SQLAlchemy database session
            currency: Currency normalizer (default: CurrencyService() without rate lookups)
        """
        self.db = db
        self.currency = currency or CurrencyService()

    def get_item(self, tenant_id: int, scheduled_item_id: int) -> ScheduledItem:
        """Get scheduled item by ID within a tenant.

        Raises:
            NotFound: If the item does not exist for this tenant
        """
        item = self.db.query(ScheduledItem).filter_by(id=scheduled_item_id, tenant_id=tenant_id).first()
        if item is None:
            raise NotFound("scheduled item", scheduled_item_id, tenant_id)
        return item

    def normalize(
        self,
        tenant_id: int,
        amount: Decimal,
        payment_currency: str,
        contract_currency: str,
        paid_date: date,
        exchange_rate: Optional[Decimal] = None,
    ) -> ConversionResult:
        """Convert a paid amount into the contract currency.

        Uses exchange_rate when given, otherwise the suggested rate for the
        paid date; without either, MissingExchangeRate is raised.
        """
        if payment_currency.upper() != contract_currency.upper() and exchange_rate is None:
            exchange_rate = self.currency.suggest_rate(tenant_id, paid_date)
        return self.currency.convert(amount, payment_currency, contract_currency, exchange_rate)

    def record_payment(
        self,
        tenant_id: int,
        scheduled_item_id: int,
        paid_amount: Decimal,
        paid_date: date,
        method: Optional[str],
        payment_currency: Optional[str] = None,
        exchange_rate: Optional[Decimal] = None,
        method_detail: Optional[str] = None,
        reference_number: Optional[str] = None,
        notes: Optional[str] = None,
        today: Optional[date] = None,
    ) -> LedgerResult:
        """Record one payment against a scheduled item.

        All validation happens before any write. The balance update is
        atomic; on a lost race the item is left unmodified and ExcessPayment
        reports the balance actually stored.

        Args:
            tenant_id: Tenant scope
            scheduled_item_id: Item being paid
            paid_amount: Amount in payment_currency (> 0)
            paid_date: Date of payment (not in the future)
            method: Payment method tag
            payment_currency: Currency of paid_amount (default: contract currency)
            exchange_rate: Local units per base unit, when currencies differ
            method_detail: Required when method is 'other'
            reference_number: Optional bank/transfer reference
            notes: Optional notes
            today: Reference date for the future-date check (default: date.today())

        Returns:
            LedgerResult with the refreshed item and the new event

        Raises:
            InvalidPayment: If paid_amount <= 0
            MissingMethod: If the method is absent or incomplete
            InvalidDate: If paid_date is after today
            MissingExchangeRate: If currencies differ and no rate is available
            ExcessPayment: If the amount exceeds the outstanding balance
            NotFound: If the item does not exist for this tenant
        """
        today = today or date.today()
        tolerance = get_settings().amount_tolerance

        amount = to_money(paid_amount)
        if amount <= 0:
            logger.error(f"Invalid payment amount: {amount} for item {scheduled_item_id}")
            raise InvalidPayment(amount)
        parsed_method = validate_method(method, method_detail)
        if paid_date > today:
            logger.error(f"Payment dated in the future: {paid_date} for item {scheduled_item_id}")
            raise InvalidDate(paid_date, today)

        item = self.get_item(tenant_id, scheduled_item_id)
        contract = self.db.query(Contract).filter_by(id=item.contract_id, tenant_id=tenant_id).first()
        if contract is None:
            raise NotFound("contract", item.contract_id, tenant_id)

        conversion = self.normalize(
            tenant_id,
            amount,
            payment_currency or contract.currency,
            contract.currency,
            paid_date,
            exchange_rate,
        )
        applied = conversion.converted_amount
        if applied <= 0:
            raise InvalidPayment(applied)

        if applied > to_money(item.expected_amount):
            logger.error(
                f"Excess payment rejected: item {item.id} amount={applied} pending={item.expected_amount}"
            )
            raise ExcessPayment(applied, item.expected_amount, item.id)

        # Single conditional update: applies only if the stored balance still covers the payment
        new_accumulated = ScheduledItem.accumulated_paid_amount + applied
        remaining = ScheduledItem.original_amount - new_accumulated
        stmt = (
            update(ScheduledItem)
            .where(
                ScheduledItem.id == item.id,
                ScheduledItem.tenant_id == tenant_id,
                ScheduledItem.expected_amount >= applied,
            )
            .values(
                accumulated_paid_amount=func.round(new_accumulated, 2),
                expected_amount=case((remaining < 0, 0), else_=func.round(remaining, 2)),
                status=case(
                    (remaining <= tolerance, ScheduleStatus.PAID.value),
                    else_=ScheduleStatus.PARTIAL.value,
                ),
            )
            .execution_options(synchronize_session=False)
        )
        updated = self.db.execute(stmt).rowcount
        if updated != 1:
            self.db.rollback()
            self.db.refresh(item)
            logger.error(
                f"Excess payment rejected after concurrent update: item {item.id} "
                f"amount={applied} pending={item.expected_amount}"
            )
            raise ExcessPayment(applied, item.expected_amount, item.id)

        self.db.refresh(item)
        resulting_status = ScheduleStatus(item.status)

        event = PaymentEvent(
            tenant_id=tenant_id,
            scheduled_item_id=item.id,
            contract_id=item.contract_id,
            paid_date=paid_date,
            paid_amount=conversion.original_amount,
            payment_currency=conversion.original_currency,
            payment_method=parsed_method.value,
            payment_method_detail=method_detail,
            reference_number=reference_number,
            notes=notes,
            exchange_rate=conversion.rate,
            converted_amount=applied,
            contract_currency=conversion.converted_currency,
            resulting_status=resulting_status.value,
        )
        self.db.add(event)
        self.db.flush()

        if resulting_status == ScheduleStatus.PAID:
            item.completing_event_id = event.id

        self.db.commit()
        self.db.refresh(item)
        self.db.refresh(event)
        logger.info(
            f"Recorded payment: item_id={item.id}, event_id={event.id}, "
            f"amount={conversion.original_amount} {conversion.original_currency}, "
            f"applied={applied} {conversion.converted_currency}, status={item.status}, "
            f"pending={item.expected_amount}"
        )
        return LedgerResult(item=item, event=event)

    def payment_history(self, tenant_id: int, scheduled_item_id: int) -> List[PaymentEvent]:
        """List events of an item ordered by paid date."""
        return (
            self.db.query(PaymentEvent)
            .filter_by(tenant_id=tenant_id, scheduled_item_id=scheduled_item_id)
            .order_by(PaymentEvent.paid_date, PaymentEvent.id)
            .all()
        )

    def reconcile_item(self, tenant_id: int, scheduled_item_id: int) -> Reconciliation:
        """Compare an item's stored balance with the sum of its events (read-only)."""
        tolerance = get_settings().amount_tolerance
        item = self.get_item(tenant_id, scheduled_item_id)
        events = self.payment_history(tenant_id, scheduled_item_id)
        events_total = to_money(sum((Decimal(str(e.converted_amount)) for e in events), Decimal(0)))

        original = to_money(item.original_amount)
        accumulated = to_money(item.accumulated_paid_amount)
        expected = to_money(item.expected_amount)
        return Reconciliation(
            scheduled_item_id=item.id,
            original_amount=original,
            accumulated_paid_amount=accumulated,
            expected_amount=expected,
            events_total=events_total,
            event_count=len(events),
            balanced=abs(original - (accumulated + expected)) <= tolerance,
            matches_events=abs(accumulated - events_total) <= tolerance,
        )


__all__ = ["LedgerResult", "LedgerService", "Reconciliation", "validate_method"]
