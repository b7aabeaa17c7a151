"""Item splitter: derives item B of a contract from its monthly rent and item A.

Item B is never stored independently: any edit of the rent or of item A
goes through compute_item_b() so that item_a + item_b == monthly_rent.
"""

from decimal import ROUND_HALF_UP, Decimal

from rentledger.models.contract import ItemTag
from rentledger.services.errors import InvalidAllocation

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Convert a number to a Decimal rounded to cents (ROUND_HALF_UP)."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def compute_item_b(monthly_rent: Decimal, item_a: Decimal | None = None) -> Decimal:
    """Return item B = monthly_rent - item_a.

    Args:
        monthly_rent: Contract rent (>= 0)
        item_a: Item A amount; None means 0 (single-item contract, all B)

    Returns:
        Item B rounded to cents

    Raises:
        InvalidAllocation: If rent or item A is negative, or item A exceeds the rent.
            The input is never clamped.
    """
    rent = to_money(monthly_rent)
    a = to_money(item_a) if item_a is not None else Decimal("0.00")

    if rent < 0:
        raise InvalidAllocation(rent, a, "monthly rent must not be negative")
    if a < 0:
        raise InvalidAllocation(rent, a, "item A must not be negative")
    if a > rent:
        raise InvalidAllocation(rent, a, "item A exceeds monthly rent")

    return to_money(rent - a)


def split_contract_items(monthly_rent: Decimal, item_a: Decimal | None = None) -> list[tuple[ItemTag, Decimal]]:
    """Return the non-zero (tag, amount) items of a contract.

    A zero-amount item produces no scheduled lines, so it is left out here.
    """
    a = to_money(item_a) if item_a is not None else Decimal("0.00")
    b = compute_item_b(monthly_rent, a)
    return [(tag, amount) for tag, amount in ((ItemTag.A, a), (ItemTag.B, b)) if amount > 0]


__all__ = ["CENT", "to_money", "compute_item_b", "split_contract_items"]
