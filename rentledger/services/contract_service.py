"""Contract service: lease lifecycle and amount edits.

Every change of monthly_rent or item_a recomputes item_b through the item
splitter; an active contract then has its schedule regenerated in the same
call so the ledger never lags behind the contract.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from rentledger.models import Contract, ContractStatus, PaymentMethod, Property
from rentledger.services.errors import InvalidAllocation, InvalidContractState, NotFound
from rentledger.services.ledger_service import validate_method
from rentledger.services.notification_service import NotificationService
from rentledger.services.schedule_service import ScheduleResult, ScheduleService
from rentledger.services.split_service import compute_item_b, to_money

logger = logging.getLogger(__name__)


def currency_code(value: str) -> str:
    """Normalize an ISO 4217 code.

    Raises:
        ValueError: If value is not three letters
    """
    code = (value or "").strip().upper()
    if len(code) != 3 or not code.isalpha():
        raise ValueError(f"Currency must be a 3-letter ISO code, got {value!r}")
    return code


class ContractService:
    """Service for contract creation, activation and edits."""

    def __init__(
        self,
        db: Session,
        schedule: Optional[ScheduleService] = None,
        notifications: Optional[NotificationService] = None,
    ):
        self.db = db
        self.schedule = schedule or ScheduleService(db)
        self.notifications = notifications or NotificationService()

    def get_contract(self, tenant_id: int, contract_id: int) -> Contract:
        return self.schedule.get_contract(tenant_id, contract_id)

    def create_contract(
        self,
        tenant_id: int,
        property_id: int,
        monthly_rent: Decimal,
        start_date: date,
        end_date: date,
        item_a: Optional[Decimal] = None,
        currency: str = "ARS",
        item_a_method: str = PaymentMethod.TRANSFER.value,
        item_a_method_detail: Optional[str] = None,
        item_b_method: str = PaymentMethod.TRANSFER.value,
        item_b_method_detail: Optional[str] = None,
        renter_name: Optional[str] = None,
        renter_email: Optional[str] = None,
    ) -> Contract:
        """Create a draft contract.

        Raises:
            NotFound: If the property does not exist for this tenant
            InvalidAllocation: If the split is invalid
            MissingMethod: If a payment method tag is absent or incomplete
            ValueError: If the term or the currency code is invalid
        """
        prop = self.db.query(Property).filter_by(id=property_id, tenant_id=tenant_id).first()
        if prop is None:
            raise NotFound("property", property_id, tenant_id)
        if end_date < start_date:
            raise ValueError(f"Contract end date {end_date} is before start date {start_date}")

        a = to_money(item_a) if item_a is not None else Decimal("0.00")
        b = compute_item_b(monthly_rent, a)
        method_a = validate_method(item_a_method, item_a_method_detail)
        method_b = validate_method(item_b_method, item_b_method_detail)

        contract = Contract(
            tenant_id=tenant_id,
            property_id=property_id,
            monthly_rent=to_money(monthly_rent),
            currency=currency_code(currency),
            item_a=a,
            item_b=b,
            item_a_method=method_a.value,
            item_a_method_detail=item_a_method_detail,
            item_b_method=method_b.value,
            item_b_method_detail=item_b_method_detail,
            start_date=start_date,
            end_date=end_date,
            status=ContractStatus.DRAFT.value,
            renter_name=renter_name,
            renter_email=renter_email,
        )
        self.db.add(contract)
        self.db.commit()
        self.db.refresh(contract)
        logger.info(
            f"Created contract: id={contract.id}, tenant_id={tenant_id}, property_id={property_id}, "
            f"rent={contract.monthly_rent} {contract.currency}, item_a={a}, item_b={b}"
        )
        return contract

    def update_amounts(
        self,
        tenant_id: int,
        contract_id: int,
        monthly_rent: Optional[Decimal] = None,
        item_a: Optional[Decimal] = None,
        periods: Optional[Iterable[date]] = None,
        as_of: Optional[date] = None,
    ) -> Optional[ScheduleResult]:
        """Change rent and/or item A, recomputing item B.

        Returns:
            ScheduleResult when the contract is active and was regenerated, else None

        Raises:
            InvalidAllocation: If the new split is invalid (contract unchanged)
            InvalidContractState: If the contract is cancelled
            RegenerationFailed: If regeneration fails (contract and ledger unchanged)
        """
        contract = self.get_contract(tenant_id, contract_id)
        if contract.status == ContractStatus.CANCELLED.value:
            raise InvalidContractState(contract_id, contract.status, "update")

        rent = to_money(monthly_rent) if monthly_rent is not None else to_money(contract.monthly_rent)
        a = to_money(item_a) if item_a is not None else to_money(contract.item_a)
        try:
            b = compute_item_b(rent, a)
        except InvalidAllocation:
            logger.error(f"Rejected amounts for contract {contract_id}: rent={rent}, item_a={a}")
            raise

        contract.monthly_rent = rent
        contract.item_a = a
        contract.item_b = b
        logger.info(f"Updated contract {contract_id} amounts: rent={rent}, item_a={a}, item_b={b}")

        if contract.status != ContractStatus.ACTIVE.value:
            self.db.commit()
            self.db.refresh(contract)
            return None

        # generate_schedule commits the amount change together with the new schedule
        return self.schedule.generate_schedule(tenant_id, contract_id, periods=periods, as_of=as_of)

    def activate_contract(
        self,
        tenant_id: int,
        contract_id: int,
        periods: Optional[Iterable[date]] = None,
        as_of: Optional[date] = None,
    ) -> ScheduleResult:
        """Activate a draft contract and generate its schedule in one commit.

        The activation notification is sent afterwards and cannot undo the
        activation.

        Raises:
            InvalidContractState: If the contract is not a draft
            RegenerationFailed: If schedule generation fails (contract stays draft)
        """
        contract = self.get_contract(tenant_id, contract_id)
        if contract.status != ContractStatus.DRAFT.value:
            raise InvalidContractState(contract_id, contract.status, "activate")

        contract.status = ContractStatus.ACTIVE.value
        result = self.schedule.generate_schedule(tenant_id, contract_id, periods=periods, as_of=as_of)
        self.db.refresh(contract)
        logger.info(f"Activated contract {contract_id} with {len(result.items)} scheduled items")

        self.notifications.notify_contract_activated(contract, len(result.items))
        return result

    def regenerate(
        self,
        tenant_id: int,
        contract_id: int,
        periods: Optional[Iterable[date]] = None,
        as_of: Optional[date] = None,
    ) -> ScheduleResult:
        """Regenerate the schedule of an active contract.

        Raises:
            InvalidContractState: If the contract is not active
        """
        contract = self.get_contract(tenant_id, contract_id)
        if contract.status != ContractStatus.ACTIVE.value:
            raise InvalidContractState(contract_id, contract.status, "regenerate")
        return self.schedule.generate_schedule(tenant_id, contract_id, periods=periods, as_of=as_of)

    def cancel_contract(self, tenant_id: int, contract_id: int) -> Contract:
        """Cancel a contract; scheduled items and payments stay as they are."""
        contract = self.get_contract(tenant_id, contract_id)
        if contract.status == ContractStatus.CANCELLED.value:
            raise InvalidContractState(contract_id, contract.status, "cancel")
        contract.status = ContractStatus.CANCELLED.value
        self.db.commit()
        self.db.refresh(contract)
        logger.info(f"Cancelled contract {contract_id}")
        return contract


__all__ = ["ContractService", "currency_code"]
