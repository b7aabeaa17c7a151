"""Contract, schedule and payment API endpoints.

Every endpoint is tenant scoped through the X-Tenant-ID header; domain
errors are rendered by the handlers registered in rentledger.main.
"""

import io
import logging
from datetime import date
from decimal import Decimal

from fastapi import APIRouter, Depends, Header, Response, status
from pydantic import BaseModel, ConfigDict
from sqlalchemy.orm import Session

from rentledger.services import get_db
from rentledger.services.contract_service import ContractService
from rentledger.services.currency_service import CurrencyService, DatabaseExchangeRateProvider
from rentledger.services.ledger_service import LedgerService
from rentledger.services.receipt_service import ReceiptService
from rentledger.services.report_service import ReportService
from rentledger.services.schedule_service import ScheduleResult, ScheduleService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/contracts", tags=["contracts"])


def get_tenant_id(x_tenant_id: int = Header(..., alias="X-Tenant-ID")) -> int:
    return x_tenant_id


# Request schemas
class ContractCreateRequest(BaseModel):
    property_id: int
    monthly_rent: Decimal
    item_a: Decimal | None = None
    currency: str = "ARS"
    start_date: date
    end_date: date
    item_a_method: str = "transfer"
    item_a_method_detail: str | None = None
    item_b_method: str = "transfer"
    item_b_method_detail: str | None = None
    renter_name: str | None = None
    renter_email: str | None = None


class AmountsUpdateRequest(BaseModel):
    monthly_rent: Decimal | None = None
    item_a: Decimal | None = None
    as_of: date | None = None


class ScheduleRequest(BaseModel):
    periods: list[date] | None = None  # default: every month of the contract term
    as_of: date | None = None


class PaymentRequest(BaseModel):
    paid_amount: Decimal
    paid_date: date
    payment_method: str | None = None
    payment_method_detail: str | None = None
    payment_currency: str | None = None
    exchange_rate: Decimal | None = None
    reference_number: str | None = None
    notes: str | None = None


class OverdueRequest(BaseModel):
    as_of: date | None = None


# Response schemas
class ContractResponse(BaseModel):
    id: int
    property_id: int
    monthly_rent: Decimal
    currency: str
    item_a: Decimal
    item_b: Decimal
    item_a_method: str
    item_b_method: str
    start_date: date
    end_date: date
    status: str

    model_config = ConfigDict(from_attributes=True)


class ScheduledItemResponse(BaseModel):
    id: int
    contract_id: int
    owner_id: int
    item: str
    period_date: date
    owner_percentage: Decimal
    original_amount: Decimal
    expected_amount: Decimal
    accumulated_paid_amount: Decimal
    status: str
    completing_event_id: int | None = None

    model_config = ConfigDict(from_attributes=True)


class ScheduleResponse(BaseModel):
    items: list[ScheduledItemResponse]
    warnings: list[str]
    replaced_count: int = 0
    preserved_count: int = 0
    retained_count: int = 0


class PaymentEventResponse(BaseModel):
    id: int
    scheduled_item_id: int
    paid_date: date
    paid_amount: Decimal
    payment_currency: str
    payment_method: str
    exchange_rate: Decimal | None = None
    converted_amount: Decimal
    contract_currency: str
    resulting_status: str

    model_config = ConfigDict(from_attributes=True)


class PaymentResponse(BaseModel):
    item: ScheduledItemResponse
    event: PaymentEventResponse


class OverdueResponse(BaseModel):
    marked: int
    item_ids: list[int]


class ReceiptResponse(BaseModel):
    id: int
    payment_event_id: int
    receipt_number: str
    receipt_date: date
    status: str
    body: str | None = None

    model_config = ConfigDict(from_attributes=True)


def _schedule_response(result: ScheduleResult) -> ScheduleResponse:
    return ScheduleResponse(
        items=[ScheduledItemResponse.model_validate(item) for item in result.items],
        warnings=[warning.message for warning in result.warnings],
        replaced_count=result.replaced_count,
        preserved_count=result.preserved_count,
        retained_count=result.retained_count,
    )


@router.get("/export.csv")
def export_ledger(
    contract_id: int | None = None,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> Response:
    """Ledger export as CSV."""
    reports = ReportService(db)
    buffer = io.StringIO()
    reports.export_csv(reports.ledger_rows(tenant_id, contract_id), buffer)
    return Response(content=buffer.getvalue(), media_type="text/csv")


@router.post("/overdue", response_model=OverdueResponse)
def mark_overdue(
    request: OverdueRequest | None = None,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> OverdueResponse:
    """Transition past-due pending items to overdue."""
    request = request or OverdueRequest()
    items = ScheduleService(db).mark_overdue(tenant_id, as_of=request.as_of)
    return OverdueResponse(marked=len(items), item_ids=[item.id for item in items])


@router.post("/items/{item_id}/payments", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    item_id: int,
    request: PaymentRequest,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> PaymentResponse:
    """Record a payment against a scheduled item."""
    ledger = LedgerService(db, CurrencyService(DatabaseExchangeRateProvider(db)))
    result = ledger.record_payment(
        tenant_id,
        item_id,
        paid_amount=request.paid_amount,
        paid_date=request.paid_date,
        method=request.payment_method,
        payment_currency=request.payment_currency,
        exchange_rate=request.exchange_rate,
        method_detail=request.payment_method_detail,
        reference_number=request.reference_number,
        notes=request.notes,
    )
    return PaymentResponse(
        item=ScheduledItemResponse.model_validate(result.item),
        event=PaymentEventResponse.model_validate(result.event),
    )


@router.post("/payments/{event_id}/receipt", response_model=ReceiptResponse)
def generate_receipt(
    event_id: int,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ReceiptResponse:
    """Generate (or return the existing) receipt of a payment event."""
    receipt = ReceiptService(db).generate_receipt(tenant_id, event_id)
    return ReceiptResponse.model_validate(receipt)


@router.post("", response_model=ContractResponse, status_code=status.HTTP_201_CREATED)
def create_contract(
    request: ContractCreateRequest,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ContractResponse:
    """Create a draft contract."""
    contract = ContractService(db).create_contract(tenant_id, **request.model_dump())
    return ContractResponse.model_validate(contract)


@router.get("/{contract_id}", response_model=ContractResponse)
def get_contract(
    contract_id: int,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ContractResponse:
    return ContractResponse.model_validate(ContractService(db).get_contract(tenant_id, contract_id))


@router.post("/{contract_id}/activate", response_model=ScheduleResponse)
def activate_contract(
    contract_id: int,
    request: ScheduleRequest | None = None,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ScheduleResponse:
    """Activate a draft contract and generate its schedule."""
    request = request or ScheduleRequest()
    result = ContractService(db).activate_contract(
        tenant_id, contract_id, periods=request.periods, as_of=request.as_of
    )
    return _schedule_response(result)


@router.patch("/{contract_id}/amounts", response_model=ContractResponse)
def update_amounts(
    contract_id: int,
    request: AmountsUpdateRequest,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ContractResponse:
    """Change rent and/or item A; active contracts are regenerated."""
    service = ContractService(db)
    service.update_amounts(
        tenant_id,
        contract_id,
        monthly_rent=request.monthly_rent,
        item_a=request.item_a,
        as_of=request.as_of,
    )
    return ContractResponse.model_validate(service.get_contract(tenant_id, contract_id))


@router.post("/{contract_id}/regenerate", response_model=ScheduleResponse)
def regenerate_schedule(
    contract_id: int,
    request: ScheduleRequest | None = None,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ScheduleResponse:
    """Regenerate the schedule of an active contract, keeping payment history."""
    request = request or ScheduleRequest()
    result = ContractService(db).regenerate(tenant_id, contract_id, periods=request.periods, as_of=request.as_of)
    return _schedule_response(result)


@router.post("/{contract_id}/cancel", response_model=ContractResponse)
def cancel_contract(
    contract_id: int,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> ContractResponse:
    return ContractResponse.model_validate(ContractService(db).cancel_contract(tenant_id, contract_id))


@router.get("/{contract_id}/schedule", response_model=list[ScheduledItemResponse])
def list_schedule(
    contract_id: int,
    tenant_id: int = Depends(get_tenant_id),
    db: Session = Depends(get_db),
) -> list[ScheduledItemResponse]:
    service = ScheduleService(db)
    service.get_contract(tenant_id, contract_id)
    return [ScheduledItemResponse.model_validate(item) for item in service.list_items(tenant_id, contract_id)]


__all__ = ["router", "get_tenant_id"]
