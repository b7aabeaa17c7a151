"""Integration tests for schedule regeneration with payment history."""

from datetime import date
from decimal import Decimal
from unittest.mock import patch

import pytest
from sqlalchemy import Delete
from sqlalchemy.exc import OperationalError

from rentledger.models import ContractStatus, OwnershipShare, PaymentEvent, ScheduledItem, ScheduleStatus
from rentledger.services.contract_service import ContractService
from rentledger.services.errors import RegenerationFailed
from rentledger.services.ledger_service import LedgerService
from rentledger.services.schedule_service import ScheduleService

JAN = date(2025, 1, 1)
FEB = date(2025, 2, 1)
TODAY = date(2025, 1, 20)


def snapshot(items):
    return sorted(
        (item.period_date, item.item, item.owner_id, item.original_amount, item.expected_amount, item.status)
        for item in items
    )


@pytest.fixture
def active_contract(db_session, make_contract, tenant_id):
    contract = make_contract(status=ContractStatus.ACTIVE)
    ScheduleService(db_session).generate_schedule(tenant_id, contract.id, periods=[JAN, FEB], as_of=JAN)
    return contract


def find_item(db_session, contract, period, tag, owner_id):
    return (
        db_session.query(ScheduledItem)
        .filter_by(contract_id=contract.id, period_date=period, item=tag, owner_id=owner_id)
        .one()
    )


def pay(db_session, item, amount):
    return LedgerService(db_session).record_payment(
        item.tenant_id, item.id, Decimal(amount), date(2025, 1, 10), "cash", today=TODAY
    )


class TestRegeneration:
    """Regeneration replaces the schedule and keeps payments."""

    def test_regeneration_without_changes_is_idempotent(self, db_session, active_contract, tenant_id):
        service = ScheduleService(db_session)
        before = snapshot(service.list_items(tenant_id, active_contract.id))

        result = service.generate_schedule(tenant_id, active_contract.id, periods=[JAN, FEB], as_of=JAN)

        assert snapshot(result.items) == before
        assert snapshot(service.list_items(tenant_id, active_contract.id)) == before
        assert result.replaced_count == len(before)

    def test_regeneration_bumps_schedule_version(self, db_session, active_contract, tenant_id):
        service = ScheduleService(db_session)

        result = service.generate_schedule(tenant_id, active_contract.id, periods=[JAN, FEB], as_of=JAN)

        assert {item.schedule_version for item in result.items} == {2}

    def test_payment_history_survives_amount_change(self, db_session, active_contract, owners, tenant_id):
        """Alice paid 200 of her 420 item A; item A then rises to 800 (her line: 480)."""
        alice = owners[0]
        item = find_item(db_session, active_contract, JAN, "A", alice.id)
        event = pay(db_session, item, "200").event

        result = ContractService(db_session).update_amounts(tenant_id, active_contract.id, item_a=Decimal("800"), periods=[JAN, FEB], as_of=JAN)

        new_item = find_item(db_session, active_contract, JAN, "A", alice.id)
        assert new_item.original_amount == Decimal("480.00")
        assert new_item.accumulated_paid_amount == Decimal("200.00")
        assert new_item.expected_amount == Decimal("280.00")
        assert new_item.status == ScheduleStatus.PARTIAL.value
        db_session.refresh(event)
        assert event.scheduled_item_id == new_item.id
        assert result.preserved_count == 1
        assert db_session.get(ScheduledItem, item.id) is None

    def test_fully_paid_item_keeps_completing_event(self, db_session, active_contract, owners, tenant_id):
        alice = owners[0]
        item = find_item(db_session, active_contract, JAN, "B", alice.id)
        event = pay(db_session, item, "180").event

        ScheduleService(db_session).generate_schedule(tenant_id, active_contract.id, periods=[JAN, FEB], as_of=JAN)

        new_item = find_item(db_session, active_contract, JAN, "B", alice.id)
        assert new_item.status == ScheduleStatus.PAID.value
        assert new_item.completing_event_id == event.id

    def test_payments_exceeding_new_amount_roll_back(self, db_session, active_contract, owners, tenant_id):
        """Lowering item A below what was already paid fails and changes nothing."""
        alice = owners[0]
        item = find_item(db_session, active_contract, JAN, "A", alice.id)
        pay(db_session, item, "420")
        before = snapshot(ScheduleService(db_session).list_items(tenant_id, active_contract.id))

        with pytest.raises(RegenerationFailed, match="exceed the new amount"):
            ContractService(db_session).update_amounts(tenant_id, active_contract.id, item_a=Decimal("500"), periods=[JAN, FEB], as_of=JAN)

        db_session.refresh(active_contract)
        assert active_contract.item_a == Decimal("700.00")
        assert active_contract.item_b == Decimal("300.00")
        assert snapshot(ScheduleService(db_session).list_items(tenant_id, active_contract.id)) == before
        assert db_session.query(PaymentEvent).one().scheduled_item_id == item.id

    def test_database_failure_rolls_back(self, db_session, active_contract, tenant_id):
        service = ScheduleService(db_session)
        before = snapshot(service.list_items(tenant_id, active_contract.id))

        real_execute = db_session.execute

        def fail_on_delete(statement, *args, **kwargs):
            if isinstance(statement, Delete):
                raise OperationalError("DELETE", {}, Exception("disk I/O error"))
            return real_execute(statement, *args, **kwargs)

        with patch.object(db_session, "execute", side_effect=fail_on_delete):
            with pytest.raises(RegenerationFailed, match="disk I/O error"):
                service.generate_schedule(tenant_id, active_contract.id, periods=[JAN, FEB], as_of=JAN)

        assert snapshot(service.list_items(tenant_id, active_contract.id)) == before

    def test_unmatched_paid_rows_are_retained(self, db_session, active_contract, owners, tenant_id):
        """Shrinking the term keeps February rows that already hold payments."""
        alice = owners[0]
        feb_item = find_item(db_session, active_contract, FEB, "A", alice.id)
        event = pay(db_session, feb_item, "100").event

        result = ScheduleService(db_session).generate_schedule(tenant_id, active_contract.id, periods=[JAN], as_of=JAN)

        assert result.retained_count == 1
        assert {item.period_date for item in result.items} == {JAN}
        remaining_feb = db_session.query(ScheduledItem).filter_by(contract_id=active_contract.id, period_date=FEB).all()
        assert [item.id for item in remaining_feb] == [feb_item.id]
        db_session.refresh(event)
        assert event.scheduled_item_id == feb_item.id
        assert db_session.query(PaymentEvent).filter_by(scheduled_item_id=None).count() == 0

    def test_retained_row_is_picked_up_again(self, db_session, active_contract, owners, tenant_id):
        alice = owners[0]
        feb_item = find_item(db_session, active_contract, FEB, "A", alice.id)
        pay(db_session, feb_item, "100")
        service = ScheduleService(db_session)
        service.generate_schedule(tenant_id, active_contract.id, periods=[JAN], as_of=JAN)

        result = service.generate_schedule(tenant_id, active_contract.id, periods=[JAN, FEB], as_of=JAN)

        new_feb = find_item(db_session, active_contract, FEB, "A", alice.id)
        assert new_feb.accumulated_paid_amount == Decimal("100.00")
        assert result.retained_count == 0
        assert len(result.items) == 8

    def test_shares_all_ended_keeps_existing_schedule(self, db_session, active_contract, tenant_id):
        """Every share ended before the term: nothing can be built, nothing is deleted."""
        service = ScheduleService(db_session)
        before = snapshot(service.list_items(tenant_id, active_contract.id))
        for share in db_session.query(OwnershipShare).all():
            share.end_date = date(2024, 12, 31)
        db_session.commit()

        with pytest.raises(RegenerationFailed, match="no scheduled lines"):
            service.generate_schedule(tenant_id, active_contract.id, periods=[JAN, FEB], as_of=JAN)

        assert snapshot(service.list_items(tenant_id, active_contract.id)) == before
