"""Integration tests for the ownership distributor."""

from datetime import date
from decimal import Decimal

import pytest

from rentledger.models import Owner, OwnershipShare, ScheduledItem, ScheduleStatus
from rentledger.services.errors import NoActiveSharesWarning, NotFound, OwnerResolutionWarning, ShareTotalWarning
from rentledger.services.schedule_service import ScheduleService

JAN = date(2025, 1, 1)


def amounts_by_key(items):
    return {(item.item, item.owner_id): item.original_amount for item in items}


class TestGenerateSchedule:
    """Test expansion of contracts into scheduled items."""

    def test_scenario_sixty_forty_split(self, db_session, make_contract, owners, tenant_id):
        """Rent 1000 with item A 700 over a 60/40 property gives four lines."""
        contract = make_contract()
        service = ScheduleService(db_session)

        result = service.generate_schedule(tenant_id, contract.id, periods=[JAN], as_of=JAN)

        alice, bob = owners
        assert len(result.items) == 4
        assert amounts_by_key(result.items) == {
            ("A", alice.id): Decimal("420.00"),
            ("A", bob.id): Decimal("280.00"),
            ("B", alice.id): Decimal("180.00"),
            ("B", bob.id): Decimal("120.00"),
        }
        assert result.warnings == []

    def test_new_items_start_unpaid(self, db_session, make_contract, tenant_id):
        contract = make_contract()

        result = ScheduleService(db_session).generate_schedule(tenant_id, contract.id, periods=[JAN], as_of=JAN)

        for item in result.items:
            assert item.expected_amount == item.original_amount
            assert item.accumulated_paid_amount == Decimal("0.00")
            assert item.status == ScheduleStatus.PENDING.value
            assert item.completing_event_id is None

    def test_default_periods_cover_contract_term(self, db_session, make_contract, tenant_id):
        contract = make_contract(start_date=date(2025, 1, 10), end_date=date(2025, 6, 9))

        result = ScheduleService(db_session).generate_schedule(tenant_id, contract.id, as_of=JAN)

        periods = sorted({item.period_date for item in result.items})
        assert periods == [date(2025, month, 1) for month in range(1, 7)]
        assert len(result.items) == 6 * 4

    def test_past_periods_start_overdue(self, db_session, make_contract, tenant_id):
        contract = make_contract()

        result = ScheduleService(db_session).generate_schedule(tenant_id, contract.id, as_of=date(2025, 2, 15))

        statuses = {item.period_date: item.status for item in result.items}
        assert statuses[date(2025, 1, 1)] == ScheduleStatus.OVERDUE.value
        assert statuses[date(2025, 2, 1)] == ScheduleStatus.OVERDUE.value
        assert statuses[date(2025, 3, 1)] == ScheduleStatus.PENDING.value

    def test_lines_sum_to_item_when_shares_total_100(self, db_session, make_contract, tenant_id):
        contract = make_contract(monthly_rent="1000.01", item_a="333.33")

        result = ScheduleService(db_session).generate_schedule(tenant_id, contract.id, periods=[JAN], as_of=JAN)

        for tag, expected_total in (("A", Decimal("333.33")), ("B", Decimal("666.68"))):
            lines = [item.original_amount for item in result.items if item.item == tag]
            assert sum(lines) == expected_total

    def test_single_item_contract(self, db_session, make_contract, tenant_id):
        contract = make_contract(item_a="0.00")

        result = ScheduleService(db_session).generate_schedule(tenant_id, contract.id, periods=[JAN], as_of=JAN)

        assert {item.item for item in result.items} == {"B"}
        assert len(result.items) == 2

    def test_unknown_contract(self, db_session, tenant_id):
        with pytest.raises(NotFound):
            ScheduleService(db_session).generate_schedule(tenant_id, 999)

    def test_contract_of_other_tenant_not_visible(self, db_session, make_contract):
        contract = make_contract()

        with pytest.raises(NotFound, match="not found for tenant 2"):
            ScheduleService(db_session).generate_schedule(2, contract.id)


class TestShareResolution:
    """Test which shares take part in a period."""

    def test_share_ending_mid_term_is_replaced(self, db_session, make_contract, property_with_shares, owners, tenant_id):
        """Bob sells his 40% to Carol at the end of January."""
        alice, bob = owners
        carol = Owner(tenant_id=tenant_id, full_name="Carol Owner")
        db_session.add(carol)
        db_session.flush()
        bob_share = db_session.query(OwnershipShare).filter_by(owner_id=bob.id).one()
        bob_share.end_date = date(2025, 1, 31)
        db_session.add(
            OwnershipShare(
                tenant_id=tenant_id,
                owner_id=carol.id,
                property_id=property_with_shares.id,
                share_percentage=Decimal("40"),
                start_date=date(2025, 2, 1),
            )
        )
        db_session.commit()
        contract = make_contract()

        result = ScheduleService(db_session).generate_schedule(
            tenant_id, contract.id, periods=[JAN, date(2025, 2, 1)], as_of=JAN
        )

        jan_owners = {item.owner_id for item in result.items if item.period_date == JAN}
        feb_owners = {item.owner_id for item in result.items if item.period_date == date(2025, 2, 1)}
        assert jan_owners == {alice.id, bob.id}
        assert feb_owners == {alice.id, carol.id}

    def test_unresolvable_owner_is_skipped_with_warning(self, db_session, make_contract, property_with_shares, tenant_id):
        foreign = Owner(tenant_id=2, full_name="Other Tenant Owner")
        db_session.add(foreign)
        db_session.flush()
        db_session.add(
            OwnershipShare(
                tenant_id=tenant_id,
                owner_id=foreign.id,
                property_id=property_with_shares.id,
                share_percentage=Decimal("10"),
                start_date=date(2024, 1, 1),
            )
        )
        db_session.commit()
        contract = make_contract()

        result = ScheduleService(db_session).generate_schedule(tenant_id, contract.id, periods=[JAN], as_of=JAN)

        assert foreign.id not in {item.owner_id for item in result.items}
        assert len(result.items) == 4
        assert any(isinstance(w, OwnerResolutionWarning) and w.owner_id == foreign.id for w in result.warnings)

    def test_share_total_below_100_warns(self, db_session, make_contract, owners, tenant_id):
        bob_share = db_session.query(OwnershipShare).filter_by(owner_id=owners[1].id).one()
        bob_share.share_percentage = Decimal("30")
        db_session.commit()
        contract = make_contract()

        result = ScheduleService(db_session).generate_schedule(tenant_id, contract.id, periods=[JAN], as_of=JAN)

        warnings = [w for w in result.warnings if isinstance(w, ShareTotalWarning)]
        assert len(warnings) == 1
        assert warnings[0].total == Decimal("90")
        # no rounding top-up when shares are incomplete
        assert sum(item.original_amount for item in result.items if item.item == "A") == Decimal("630.00")

    def test_owner_with_two_shares_gets_one_line(self, db_session, make_contract, property_with_shares, owners, tenant_id):
        alice, _ = owners
        alice_share = db_session.query(OwnershipShare).filter_by(owner_id=alice.id).one()
        alice_share.share_percentage = Decimal("50")
        db_session.add(
            OwnershipShare(
                tenant_id=tenant_id,
                owner_id=alice.id,
                property_id=property_with_shares.id,
                share_percentage=Decimal("10"),
                start_date=date(2024, 6, 1),
            )
        )
        db_session.commit()
        contract = make_contract()

        result = ScheduleService(db_session).generate_schedule(tenant_id, contract.id, periods=[JAN], as_of=JAN)

        alice_a = [item for item in result.items if item.owner_id == alice.id and item.item == "A"]
        assert len(alice_a) == 1
        assert alice_a[0].original_amount == Decimal("420.00")
        assert alice_a[0].owner_percentage == Decimal("60.00")

    def test_items_are_persisted(self, db_session, make_contract, tenant_id):
        contract = make_contract()
        ScheduleService(db_session).generate_schedule(tenant_id, contract.id, periods=[JAN], as_of=JAN)

        assert db_session.query(ScheduledItem).filter_by(contract_id=contract.id).count() == 4


class TestZeroAmountLines:
    """Lines that would carry 0.00 are never written."""

    def test_zero_percent_share_gets_no_lines(self, db_session, make_contract, property_with_shares, tenant_id):
        silent = Owner(tenant_id=tenant_id, full_name="Silent Partner")
        db_session.add(silent)
        db_session.flush()
        db_session.add(
            OwnershipShare(
                tenant_id=tenant_id,
                owner_id=silent.id,
                property_id=property_with_shares.id,
                share_percentage=Decimal("0"),
                start_date=date(2024, 1, 1),
            )
        )
        db_session.commit()
        contract = make_contract()

        result = ScheduleService(db_session).generate_schedule(
            tenant_id, contract.id, periods=[JAN], as_of=date(2025, 2, 1)
        )

        assert len(result.items) == 4
        assert silent.id not in {item.owner_id for item in result.items}
        assert not [w for w in result.warnings if isinstance(w, ShareTotalWarning)]

    def test_rounding_to_zero_skips_owner(self, db_session, make_contract, owners, tenant_id):
        """Item B of 0.01 split 60/40: Alice carries the cent, Bob gets no line."""
        alice, _ = owners
        contract = make_contract(monthly_rent="100.01", item_a="100.00")

        result = ScheduleService(db_session).generate_schedule(
            tenant_id, contract.id, periods=[JAN], as_of=date(2025, 2, 1)
        )

        b_lines = [(item.owner_id, item.original_amount) for item in result.items if item.item == "B"]
        assert b_lines == [(alice.id, Decimal("0.01"))]
        assert all(item.original_amount > 0 for item in result.items)
        overdue_b = [item for item in ScheduleService(db_session).list_overdue(tenant_id, date(2025, 2, 1)) if item.item == "B"]
        assert [item.owner_id for item in overdue_b] == [alice.id]

    def test_period_without_active_shares_warns(self, db_session, make_contract, tenant_id):
        for share in db_session.query(OwnershipShare).all():
            share.start_date = date(2025, 2, 1)
        db_session.commit()
        contract = make_contract()

        result = ScheduleService(db_session).generate_schedule(
            tenant_id, contract.id, periods=[JAN, date(2025, 2, 1)], as_of=JAN
        )

        assert {item.period_date for item in result.items} == {date(2025, 2, 1)}
        warnings = [w for w in result.warnings if isinstance(w, NoActiveSharesWarning)]
        assert [w.period_date for w in warnings] == [JAN]
