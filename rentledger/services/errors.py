"""Domain exceptions for allocation, ledger and currency operations.

Every error carries a machine-readable code and a message naming the rule
that was violated together with the values involved, so each caller (API,
CLI) can render a precise explanation without re-deriving it.
"""

from datetime import date
from decimal import Decimal


def _money(value: Decimal | None) -> str:
    if value is None:
        return "None"
    return f"{Decimal(value):.2f}"


class LedgerError(Exception):
    """Base exception for allocation and ledger errors."""

    code = "ledger_error"

    def __init__(self, message: str, **details):
        self.message = message
        self.details = details
        super().__init__(message)


class InvalidAllocation(LedgerError):
    """Item split constraint violated (negative amounts or item A above rent)."""

    code = "invalid_allocation"

    def __init__(self, monthly_rent: Decimal, item_a: Decimal, reason: str):
        super().__init__(
            f"invalid allocation: {reason} (monthly rent {_money(monthly_rent)}, item A {_money(item_a)})",
            monthly_rent=monthly_rent,
            item_a=item_a,
        )


class InvalidPayment(LedgerError):
    """Payment amount is not positive."""

    code = "invalid_payment"

    def __init__(self, paid_amount: Decimal):
        super().__init__(
            f"payment amount {_money(paid_amount)} must be greater than 0",
            paid_amount=paid_amount,
        )


class ExcessPayment(LedgerError):
    """Payment exceeds the outstanding balance of the scheduled item."""

    code = "excess_payment"

    def __init__(self, paid_amount: Decimal, pending_balance: Decimal, scheduled_item_id: int | None = None):
        super().__init__(
            f"payment amount {_money(paid_amount)} exceeds pending balance {_money(pending_balance)}",
            paid_amount=paid_amount,
            pending_balance=pending_balance,
            scheduled_item_id=scheduled_item_id,
        )


class InvalidDate(LedgerError):
    """Paid date lies in the future."""

    code = "invalid_date"

    def __init__(self, paid_date: date, today: date):
        super().__init__(
            f"paid date {paid_date.isoformat()} is after today ({today.isoformat()})",
            paid_date=paid_date,
            today=today,
        )


class MissingMethod(LedgerError):
    """Payment method absent, unknown, or 'other' without a detail."""

    code = "missing_method"

    def __init__(self, method: str | None, reason: str = "payment method is required"):
        super().__init__(f"{reason} (got {method!r})", method=method)


class MissingExchangeRate(LedgerError):
    """Currencies differ and no usable rate is available."""

    code = "missing_exchange_rate"

    def __init__(self, from_currency: str, to_currency: str, rate: Decimal | None = None):
        if rate is None:
            message = (
                f"exchange rate required to convert {from_currency} to {to_currency}; "
                f"enter the rate manually"
            )
        else:
            message = f"exchange rate {rate} for {from_currency} to {to_currency} must be greater than 0"
        super().__init__(message, from_currency=from_currency, to_currency=to_currency, rate=rate)


class UnsupportedConversion(LedgerError):
    """Neither side of the conversion is the configured base currency."""

    code = "unsupported_conversion"

    def __init__(self, from_currency: str, to_currency: str, base_currency: str):
        super().__init__(
            f"cannot convert {from_currency} to {to_currency}: rates are quoted against {base_currency}",
            from_currency=from_currency,
            to_currency=to_currency,
            base_currency=base_currency,
        )


class NotFound(LedgerError):
    """Row does not exist for the given tenant."""

    code = "not_found"

    def __init__(self, entity: str, entity_id: int, tenant_id: int):
        super().__init__(
            f"{entity} {entity_id} not found for tenant {tenant_id}",
            entity=entity,
            entity_id=entity_id,
            tenant_id=tenant_id,
        )


class InvalidContractState(LedgerError):
    """Operation not allowed in the contract's current status."""

    code = "invalid_contract_state"

    def __init__(self, contract_id: int, status: str, operation: str):
        super().__init__(
            f"cannot {operation} contract {contract_id} in status {status!r}",
            contract_id=contract_id,
            status=status,
            operation=operation,
        )


class RegenerationFailed(LedgerError):
    """Schedule generation could not complete; all changes were rolled back."""

    code = "regeneration_failed"

    def __init__(self, contract_id: int, reason: str):
        super().__init__(
            f"schedule regeneration for contract {contract_id} failed and was rolled back: {reason}",
            contract_id=contract_id,
            reason=reason,
        )


class ScheduleWarning(UserWarning):
    """Non-fatal problem found while generating a schedule.

    Warnings are collected on the schedule result, never raised.
    """

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class OwnerResolutionWarning(ScheduleWarning):
    """A share's owner could not be resolved; its lines were skipped."""

    def __init__(self, owner_id: int, share_id: int, period_date: date):
        self.owner_id = owner_id
        self.share_id = share_id
        self.period_date = period_date
        super().__init__(
            f"owner {owner_id} of share {share_id} could not be resolved; "
            f"skipped lines for period {period_date.isoformat()}"
        )


class ShareTotalWarning(ScheduleWarning):
    """Active shares of a period do not add up to 100%."""

    def __init__(self, property_id: int, period_date: date, total: Decimal):
        self.property_id = property_id
        self.period_date = period_date
        self.total = total
        super().__init__(
            f"active shares of property {property_id} add up to {total}% "
            f"for period {period_date.isoformat()} (expected 100%)"
        )


class NoActiveSharesWarning(ScheduleWarning):
    """No resolvable share with a positive percentage is active in a period."""

    def __init__(self, property_id: int, period_date: date):
        self.property_id = property_id
        self.period_date = period_date
        super().__init__(
            f"no active shares of property {property_id} for period {period_date.isoformat()}; "
            f"no lines generated"
        )


__all__ = [
    "LedgerError",
    "InvalidAllocation",
    "InvalidPayment",
    "ExcessPayment",
    "InvalidDate",
    "MissingMethod",
    "MissingExchangeRate",
    "UnsupportedConversion",
    "NotFound",
    "InvalidContractState",
    "RegenerationFailed",
    "ScheduleWarning",
    "OwnerResolutionWarning",
    "ShareTotalWarning",
    "NoActiveSharesWarning",
]
