"""Reporting over the ledger: export rows, owner income and the payment calendar."""

import csv
import logging
from collections import OrderedDict
from datetime import date
from decimal import Decimal
from typing import IO, Iterable, List, NamedTuple, Optional

from sqlalchemy.orm import Session

from rentledger.models import Owner, PaymentEvent, ScheduledItem, ScheduleStatus
from rentledger.services.split_service import to_money

logger = logging.getLogger(__name__)

# Column order of the export is a stable contract with downstream spreadsheets
EXPORT_COLUMNS = (
    "period",
    "owner",
    "item",
    "original_amount",
    "paid_amount",
    "pending_amount",
    "status",
)

ACCRUAL = "accrual"
CASH = "cash"


class LedgerRow(NamedTuple):
    period: date
    owner: str
    item: str
    original_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    status: str


class OwnerIncome(NamedTuple):
    period: date  # first day of the month
    owner_id: int
    owner: str
    amount: Decimal


class PeriodSummary(NamedTuple):
    period: date
    original_amount: Decimal
    paid_amount: Decimal
    pending_amount: Decimal
    status: str


def month_start(value: date) -> date:
    return value.replace(day=1)


def period_status(statuses: Iterable[str]) -> str:
    """Aggregate status of a period from the statuses of its items."""
    statuses = set(statuses)
    if not statuses:
        return ScheduleStatus.PENDING.value
    if statuses == {ScheduleStatus.PAID.value}:
        return ScheduleStatus.PAID.value
    if ScheduleStatus.OVERDUE.value in statuses:
        return ScheduleStatus.OVERDUE.value
    if statuses & {ScheduleStatus.PARTIAL.value, ScheduleStatus.PAID.value}:
        return ScheduleStatus.PARTIAL.value
    return ScheduleStatus.PENDING.value


class ReportService:
    """Read-only reports over scheduled items and payment events."""

    def __init__(self, db: Session):
        self.db = db

    def ledger_rows(self, tenant_id: int, contract_id: Optional[int] = None) -> List[LedgerRow]:
        """One row per scheduled item, ordered by period, item and owner."""
        query = (
            self.db.query(ScheduledItem, Owner)
            .join(Owner, Owner.id == ScheduledItem.owner_id)
            .filter(ScheduledItem.tenant_id == tenant_id)
        )
        if contract_id is not None:
            query = query.filter(ScheduledItem.contract_id == contract_id)
        query = query.order_by(
            ScheduledItem.period_date,
            ScheduledItem.contract_id,
            ScheduledItem.item,
            Owner.full_name,
        )
        return [
            LedgerRow(
                period=item.period_date,
                owner=owner.full_name,
                item=item.item,
                original_amount=to_money(item.original_amount),
                paid_amount=to_money(item.accumulated_paid_amount),
                pending_amount=to_money(item.expected_amount),
                status=item.status,
            )
            for item, owner in query.all()
        ]

    def export_csv(self, rows: Iterable[LedgerRow], stream: IO[str]) -> int:
        """Write rows as CSV with the export header.

        Returns:
            Number of data rows written
        """
        writer = csv.writer(stream)
        writer.writerow(EXPORT_COLUMNS)
        count = 0
        for row in rows:
            writer.writerow(
                [
                    row.period.isoformat(),
                    row.owner,
                    row.item,
                    f"{row.original_amount:.2f}",
                    f"{row.paid_amount:.2f}",
                    f"{row.pending_amount:.2f}",
                    row.status,
                ]
            )
            count += 1
        logger.info(f"Exported {count} ledger rows")
        return count

    def owner_net_income(
        self,
        tenant_id: int,
        start: date,
        end: date,
        view: str = ACCRUAL,
    ) -> List[OwnerIncome]:
        """Income per month and owner between start and end (inclusive).

        Args:
            view: 'accrual' totals scheduled amounts by period date;
                'cash' totals payment events by paid date

        Raises:
            ValueError: If view is unknown
        """
        totals: "OrderedDict[tuple, Decimal]" = OrderedDict()
        names = {}

        if view == ACCRUAL:
            rows = (
                self.db.query(ScheduledItem.period_date, Owner.id, Owner.full_name, ScheduledItem.original_amount)
                .join(Owner, Owner.id == ScheduledItem.owner_id)
                .filter(
                    ScheduledItem.tenant_id == tenant_id,
                    ScheduledItem.period_date >= start,
                    ScheduledItem.period_date <= end,
                )
                .order_by(ScheduledItem.period_date, Owner.id)
                .all()
            )
        elif view == CASH:
            rows = (
                self.db.query(PaymentEvent.paid_date, Owner.id, Owner.full_name, PaymentEvent.converted_amount)
                .join(ScheduledItem, ScheduledItem.id == PaymentEvent.scheduled_item_id)
                .join(Owner, Owner.id == ScheduledItem.owner_id)
                .filter(
                    PaymentEvent.tenant_id == tenant_id,
                    PaymentEvent.paid_date >= start,
                    PaymentEvent.paid_date <= end,
                )
                .order_by(PaymentEvent.paid_date, Owner.id)
                .all()
            )
        else:
            raise ValueError(f"Unknown income view {view!r}; expected '{ACCRUAL}' or '{CASH}'")

        for on_date, owner_id, owner_name, amount in rows:
            key = (month_start(on_date), owner_id)
            names[owner_id] = owner_name
            totals[key] = totals.get(key, Decimal("0.00")) + to_money(amount)

        return [
            OwnerIncome(period=period, owner_id=owner_id, owner=names[owner_id], amount=to_money(amount))
            for (period, owner_id), amount in sorted(totals.items())
        ]

    def calendar_summary(self, tenant_id: int, contract_id: int) -> List[PeriodSummary]:
        """Totals per period of a contract, across items and owners."""
        items = (
            self.db.query(ScheduledItem)
            .filter_by(tenant_id=tenant_id, contract_id=contract_id)
            .order_by(ScheduledItem.period_date)
            .all()
        )
        by_period: "OrderedDict[date, list]" = OrderedDict()
        for item in items:
            by_period.setdefault(item.period_date, []).append(item)

        summaries = []
        for period, period_items in by_period.items():
            summaries.append(
                PeriodSummary(
                    period=period,
                    original_amount=to_money(sum((Decimal(str(i.original_amount)) for i in period_items), Decimal(0))),
                    paid_amount=to_money(
                        sum((Decimal(str(i.accumulated_paid_amount)) for i in period_items), Decimal(0))
                    ),
                    pending_amount=to_money(sum((Decimal(str(i.expected_amount)) for i in period_items), Decimal(0))),
                    status=period_status(i.status for i in period_items),
                )
            )
        return summaries


__all__ = [
    "ACCRUAL",
    "CASH",
    "EXPORT_COLUMNS",
    "LedgerRow",
    "OwnerIncome",
    "PeriodSummary",
    "ReportService",
    "period_status",
]
