"""Contract tests for the command line entry points."""

from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import rentledger.services
from rentledger.cli import export, overdue
from rentledger.models import Base, Contract, Owner, OwnershipShare, Property, ScheduledItem
from rentledger.services.schedule_service import ScheduleService


@pytest.fixture
def cli_db(monkeypatch, tmp_path):
    """Point the CLIs at a seeded in-memory database and a temporary log file."""
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(engine)
    factory = sessionmaker(bind=engine)
    monkeypatch.setattr(rentledger.services, "SessionLocal", factory)
    monkeypatch.setenv("LOG_FILE", str(tmp_path / "logs" / "cli.log"))

    with factory() as db:
        owner = Owner(tenant_id=1, full_name="Solo Owner")
        prop = Property(tenant_id=1, name="Depto 4B")
        db.add_all([owner, prop])
        db.flush()
        db.add(
            OwnershipShare(
                tenant_id=1,
                owner_id=owner.id,
                property_id=prop.id,
                share_percentage=Decimal("100"),
                start_date=date(2024, 1, 1),
            )
        )
        contract = Contract(
            tenant_id=1,
            property_id=prop.id,
            monthly_rent=Decimal("1000"),
            item_a=Decimal("600"),
            item_b=Decimal("400"),
            start_date=date(2025, 1, 1),
            end_date=date(2025, 2, 28),
            status="active",
        )
        db.add(contract)
        db.commit()
        ScheduleService(db).generate_schedule(1, contract.id, as_of=date(2025, 1, 1))
    yield factory
    engine.dispose()


class TestExportCommand:
    def test_writes_csv_file(self, cli_db, tmp_path):
        output = tmp_path / "ledger.csv"

        exit_code = export.main(["--tenant", "1", "--output", str(output)])

        assert exit_code == 0
        lines = output.read_text(encoding="utf-8").splitlines()
        assert lines[0] == "period,owner,item,original_amount,paid_amount,pending_amount,status"
        assert lines[1] == "2025-01-01,Solo Owner,A,600.00,0.00,600.00,pending"
        assert len(lines) == 5

    def test_stdout_carries_only_csv(self, cli_db, capsys):
        assert export.main(["--tenant", "1"]) == 0

        out = capsys.readouterr().out
        assert out.splitlines()[0].startswith("period,owner,item")
        assert " - INFO - " not in out

    def test_unwritable_output_fails(self, cli_db, tmp_path):
        assert export.main(["--tenant", "1", "--output", str(tmp_path / "missing" / "ledger.csv")]) == 1


class TestOverdueCommand:
    def test_marks_items(self, cli_db):
        assert overdue.main(["--tenant", "1", "--as-of", "2025-02-15"]) == 0

        with cli_db() as db:
            statuses = {item.period_date: item.status for item in db.query(ScheduledItem).all()}
        assert statuses[date(2025, 1, 1)] == "overdue"
        assert statuses[date(2025, 2, 1)] == "overdue"

    def test_nothing_due(self, cli_db):
        assert overdue.main(["--tenant", "1", "--as-of", "2025-01-01", "--no-notify"]) == 0
