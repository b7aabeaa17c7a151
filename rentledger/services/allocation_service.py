"""Allocation service for distributing contract items across co-owners.

Each owner receives item_amount * percentage / 100, rounded to cents. When
the percentages of a period add up to exactly 100, rounding cents are
handed to the largest share holders so the lines sum to the item amount.
"""

from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from typing import Dict, Iterator

from rentledger.services.split_service import CENT

HUNDRED = Decimal("100")


class AllocationService:
    """Percentage allocation engine for owner shares."""

    def allocate_by_percentage(
        self,
        total_amount: Decimal,
        percentages: Dict[int, Decimal],
    ) -> Dict[int, Decimal]:
        """Distribute amount by percentage shares.

        Ensures: sum(result) == total_amount when percentages sum to 100
        (zero money loss/creation).

        Algorithm:
        1. Allocate: amount_per_owner = total * pct / 100 (rounded half up)
        2. If percentages sum to 100, calculate remainder (may be negative)
        3. Sort owners by percentage descending (owner id breaks ties)
        4. Hand out remainder one cent at a time to the largest holders

        Args:
            total_amount: Item amount to distribute
            percentages: Dict mapping owner_id to share percentage

        Returns:
            Dict mapping owner_id to allocated amount
        """
        if not percentages:
            return {}

        total = Decimal(str(total_amount))
        share_dict = {k: Decimal(str(v)) for k, v in percentages.items()}

        allocations = {}
        allocated_total = Decimal(0)
        for owner_id, pct in share_dict.items():
            allocated = (total * pct / HUNDRED).quantize(CENT, rounding=ROUND_HALF_UP)
            allocations[owner_id] = allocated
            allocated_total += allocated

        if sum(share_dict.values()) != HUNDRED:
            # Shares are incomplete (or over-allocated): no remainder to settle
            return allocations

        remainder = total - allocated_total
        if remainder == 0:
            return allocations

        remainder_cents = int((abs(remainder) / CENT).to_integral_value())
        step = CENT if remainder > 0 else -CENT

        sorted_owners = sorted(share_dict.items(), key=lambda x: (-x[1], x[0]))
        for i in range(remainder_cents):
            owner_id = sorted_owners[i % len(sorted_owners)][0]
            allocations[owner_id] += step

        return allocations

    def total_percentage(self, percentages: Dict[int, Decimal]) -> Decimal:
        """Sum of share percentages."""
        return sum((Decimal(str(v)) for v in percentages.values()), Decimal(0))


def monthly_periods(start_date: date, end_date: date) -> Iterator[date]:
    """Yield the first day of every month between start_date and end_date.

    The month containing start_date is included even if the contract starts
    mid-month; the month containing end_date is included as well.
    """
    if end_date < start_date:
        return
    year, month = start_date.year, start_date.month
    while (year, month) <= (end_date.year, end_date.month):
        yield date(year, month, 1)
        month += 1
        if month > 12:
            year, month = year + 1, 1


__all__ = ["AllocationService", "monthly_periods"]
