"""Schedule service: expands a contract into per-owner scheduled items.

Provides methods for:
- Generating the schedule of a contract (period x active share x item)
- Regenerating it while carrying payment history onto the new rows
- Marking past-due items as overdue
"""

import logging
from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Dict, Iterable, List, Optional

from sqlalchemy import delete, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from rentledger.models import (
    Contract,
    Owner,
    OwnershipShare,
    PaymentEvent,
    ScheduledItem,
    ScheduleStatus,
)
from rentledger.services.allocation_service import HUNDRED, AllocationService, monthly_periods
from rentledger.services.config import get_settings
from rentledger.services.errors import (
    LedgerError,
    NoActiveSharesWarning,
    NotFound,
    OwnerResolutionWarning,
    RegenerationFailed,
    ScheduleWarning,
    ShareTotalWarning,
)
from rentledger.services.split_service import split_contract_items, to_money

logger = logging.getLogger(__name__)


@dataclass
class ScheduleResult:
    """Outcome of a (re)generation.

    Attributes:
        items: Scheduled items of the new schedule version
        warnings: Non-fatal problems (skipped owners, periods without shares, share totals != 100)
        replaced_count: Rows of the previous version that were deleted
        preserved_count: New rows that inherited payments from a previous row
        retained_count: Previous rows kept because they hold payments with no new counterpart
    """

    items: List[ScheduledItem] = field(default_factory=list)
    warnings: List[ScheduleWarning] = field(default_factory=list)
    replaced_count: int = 0
    preserved_count: int = 0
    retained_count: int = 0


def initial_status(period_date: date, as_of: date) -> ScheduleStatus:
    """Status of an unpaid item at generation time."""
    return ScheduleStatus.OVERDUE if period_date < as_of else ScheduleStatus.PENDING


class ScheduleService:
    """Ownership distributor and schedule lifecycle."""

    def __init__(self, db: Session, allocation: Optional[AllocationService] = None):
        """Initialize schedule service.

        Args:
            db: SQLAlchemy database session
            allocation: Allocation engine (default: AllocationService())
        """
        self.db = db
        self.allocation = allocation or AllocationService()

    def get_contract(self, tenant_id: int, contract_id: int) -> Contract:
        """Get contract by ID within a tenant.

        Raises:
            NotFound: If the contract does not exist for this tenant
        """
        contract = self.db.query(Contract).filter_by(id=contract_id, tenant_id=tenant_id).first()
        if contract is None:
            raise NotFound("contract", contract_id, tenant_id)
        return contract

    def list_items(self, tenant_id: int, contract_id: int) -> List[ScheduledItem]:
        """List scheduled items of a contract ordered by period, item and owner."""
        return (
            self.db.query(ScheduledItem)
            .filter_by(tenant_id=tenant_id, contract_id=contract_id)
            .order_by(ScheduledItem.period_date, ScheduledItem.item, ScheduledItem.owner_id)
            .all()
        )

    def active_percentages(
        self,
        tenant_id: int,
        shares: Iterable[OwnershipShare],
        period_date: date,
        owners: Dict[int, Owner],
        warnings: List[ScheduleWarning],
    ) -> Dict[int, Decimal]:
        """Percentages per resolvable owner for one period.

        Shares of the same owner active on the same date are combined.
        Shares at 0% are ignored; unresolvable owners are skipped with an
        OwnerResolutionWarning.
        """
        percentages: Dict[int, Decimal] = {}
        for share in shares:
            if not share.is_active_on(period_date):
                continue
            pct = Decimal(str(share.share_percentage))
            if pct <= 0:
                continue
            if share.owner_id not in owners:
                warnings.append(OwnerResolutionWarning(share.owner_id, share.id, period_date))
                logger.warning(
                    f"Skipping share {share.id}: owner {share.owner_id} not found for tenant {tenant_id}"
                )
                continue
            percentages[share.owner_id] = percentages.get(share.owner_id, Decimal(0)) + pct
        return percentages

    def build_lines(
        self,
        contract: Contract,
        periods: Iterable[date],
        warnings: List[ScheduleWarning],
    ) -> List[dict]:
        """Compute the lines of a schedule without touching the database session.

        Returns:
            List of dicts with period_date, item, owner_id, owner_percentage, original_amount
        """
        items = split_contract_items(contract.monthly_rent, contract.item_a)
        shares = (
            self.db.query(OwnershipShare)
            .filter_by(tenant_id=contract.tenant_id, property_id=contract.property_id)
            .order_by(OwnershipShare.id)
            .all()
        )
        owner_ids = {share.owner_id for share in shares}
        owners: Dict[int, Owner] = {}
        if owner_ids:
            resolved = (
                self.db.query(Owner)
                .filter(Owner.tenant_id == contract.tenant_id, Owner.id.in_(owner_ids))
                .all()
            )
            owners = {owner.id: owner for owner in resolved}

        lines = []
        for period_date in periods:
            percentages = self.active_percentages(contract.tenant_id, shares, period_date, owners, warnings)
            if not percentages:
                warnings.append(NoActiveSharesWarning(contract.property_id, period_date))
                logger.warning(f"No active shares of property {contract.property_id} for {period_date}")
                continue

            total = self.allocation.total_percentage(percentages)
            if total != HUNDRED:
                warnings.append(ShareTotalWarning(contract.property_id, period_date, total))
                logger.warning(
                    f"Shares of property {contract.property_id} add up to {total}% for {period_date}"
                )

            for tag, amount in items:
                allocated = self.allocation.allocate_by_percentage(amount, percentages)
                for owner_id in sorted(allocated):
                    # no line for a 0.00 allocation
                    if allocated[owner_id] <= 0:
                        continue
                    lines.append(
                        {
                            "period_date": period_date,
                            "item": tag.value,
                            "owner_id": owner_id,
                            "owner_percentage": percentages[owner_id],
                            "original_amount": allocated[owner_id],
                        }
                    )
        return lines

    def generate_schedule(
        self,
        tenant_id: int,
        contract_id: int,
        periods: Optional[Iterable[date]] = None,
        as_of: Optional[date] = None,
    ) -> ScheduleResult:
        """Generate (or regenerate) the schedule of a contract.

        Two phases inside one transaction:
        1. Write the new schedule version, carrying accumulated payments of
           rows matching (period, item, owner) and re-linking their events
        2. Delete the previous rows (rows holding payments with no match are kept)

        Args:
            tenant_id: Tenant scope
            contract_id: Contract to expand
            periods: Period dates (default: first of every month of the contract term)
            as_of: Date used to classify unpaid past periods as overdue (default: today)

        Returns:
            ScheduleResult with the new items and collected warnings

        Raises:
            NotFound: If the contract does not exist for this tenant
            RegenerationFailed: If any step fails; nothing is changed in that case
        """
        contract = self.get_contract(tenant_id, contract_id)
        as_of = as_of or date.today()
        if periods is None:
            periods = monthly_periods(contract.start_date, contract.end_date)
        periods = sorted(set(periods))

        result = ScheduleResult()
        try:
            result = self._write_schedule(contract, periods, as_of, result)
            self.db.commit()
        except RegenerationFailed as e:
            self.db.rollback()
            logger.error(str(e))
            raise
        except (SQLAlchemyError, LedgerError) as e:
            self.db.rollback()
            logger.error(f"Schedule generation failed for contract {contract_id}: {e}")
            reason = e.message if isinstance(e, LedgerError) else str(e)
            raise RegenerationFailed(contract_id, reason) from e

        for item in result.items:
            self.db.refresh(item)
        logger.info(
            f"Generated schedule: contract_id={contract_id}, items={len(result.items)}, "
            f"replaced={result.replaced_count}, preserved={result.preserved_count}, "
            f"retained={result.retained_count}, warnings={len(result.warnings)}"
        )
        return result

    def _write_schedule(
        self,
        contract: Contract,
        periods: List[date],
        as_of: date,
        result: ScheduleResult,
    ) -> ScheduleResult:
        tolerance = get_settings().amount_tolerance
        lines = self.build_lines(contract, periods, result.warnings)

        previous = self.list_items(contract.tenant_id, contract.id)
        if not lines and previous:
            raise RegenerationFailed(
                contract.id,
                f"no scheduled lines could be built for {len(periods)} period(s); "
                f"the existing {len(previous)} item(s) are kept",
            )
        previous_by_key = {item.key: item for item in previous}
        version = max((item.schedule_version for item in previous), default=0) + 1

        # Phase 1: new version, carrying payment state of matching rows
        matched_ids = set()
        relinks = []
        for line in lines:
            original = to_money(line["original_amount"])
            old = previous_by_key.get((line["period_date"], line["item"], line["owner_id"]))
            accumulated = to_money(old.accumulated_paid_amount) if old is not None else Decimal("0.00")

            if accumulated - original > tolerance:
                raise RegenerationFailed(
                    contract.id,
                    f"payments of {accumulated} on item {line['item']} for owner {line['owner_id']} "
                    f"period {line['period_date'].isoformat()} exceed the new amount {original}",
                )

            expected = max(Decimal("0.00"), original - accumulated)
            if accumulated > 0 and expected <= tolerance:
                status = ScheduleStatus.PAID
            elif accumulated > 0:
                status = ScheduleStatus.PARTIAL
            else:
                status = initial_status(line["period_date"], as_of)

            item = ScheduledItem(
                tenant_id=contract.tenant_id,
                contract_id=contract.id,
                owner_id=line["owner_id"],
                item=line["item"],
                period_date=line["period_date"],
                owner_percentage=line["owner_percentage"],
                original_amount=original,
                expected_amount=expected,
                accumulated_paid_amount=accumulated,
                status=status.value,
                schedule_version=version,
                completing_event_id=(
                    old.completing_event_id if old is not None and status == ScheduleStatus.PAID else None
                ),
            )
            self.db.add(item)
            result.items.append(item)

            if old is not None:
                matched_ids.add(old.id)
                relinks.append((old.id, item))
                if accumulated > 0:
                    result.preserved_count += 1

        self.db.flush()

        for previous_id, item in relinks:
            self.db.execute(
                update(PaymentEvent)
                .where(PaymentEvent.scheduled_item_id == previous_id)
                .values(scheduled_item_id=item.id)
                .execution_options(synchronize_session=False)
            )

        # Phase 2: drop the previous version, except rows still holding payments
        linked_ids = {
            row[0]
            for row in self.db.query(PaymentEvent.scheduled_item_id)
            .filter(PaymentEvent.contract_id == contract.id, PaymentEvent.tenant_id == contract.tenant_id)
            .distinct()
            .all()
        }
        to_delete = []
        for old in previous:
            if old.id not in matched_ids and old.id in linked_ids:
                result.retained_count += 1
                logger.warning(
                    f"Keeping scheduled item {old.id} of contract {contract.id}: "
                    f"it holds payments and has no counterpart in the new schedule"
                )
                continue
            to_delete.append(old.id)

        if to_delete:
            self.db.execute(
                delete(ScheduledItem)
                .where(ScheduledItem.id.in_(to_delete))
                .execution_options(synchronize_session=False)
            )
            for old in previous:
                if old.id in to_delete:
                    self.db.expunge(old)
        result.replaced_count = len(to_delete)
        return result

    def mark_overdue(self, tenant_id: int, as_of: Optional[date] = None) -> List[ScheduledItem]:
        """Transition pending items whose period date is before as_of to overdue.

        Returns:
            Items that changed status in this call
        """
        as_of = as_of or date.today()
        items = (
            self.db.query(ScheduledItem)
            .filter(
                ScheduledItem.tenant_id == tenant_id,
                ScheduledItem.status == ScheduleStatus.PENDING.value,
                ScheduledItem.period_date < as_of,
            )
            .all()
        )
        if not items:
            return []

        ids = [item.id for item in items]
        self.db.execute(
            update(ScheduledItem)
            .where(
                ScheduledItem.id.in_(ids),
                ScheduledItem.status == ScheduleStatus.PENDING.value,
            )
            .values(status=ScheduleStatus.OVERDUE.value)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        for item in items:
            self.db.refresh(item)
        logger.info(f"Marked {len(items)} scheduled items overdue for tenant {tenant_id} as of {as_of}")
        return items

    def list_overdue(self, tenant_id: int, as_of: Optional[date] = None) -> List[ScheduledItem]:
        """Unpaid items whose period date is before as_of (pending, partial or overdue)."""
        as_of = as_of or date.today()
        return (
            self.db.query(ScheduledItem)
            .filter(
                ScheduledItem.tenant_id == tenant_id,
                ScheduledItem.status != ScheduleStatus.PAID.value,
                ScheduledItem.period_date < as_of,
            )
            .order_by(ScheduledItem.period_date, ScheduledItem.contract_id)
            .all()
        )


__all__ = ["ScheduleResult", "ScheduleService", "initial_status"]
