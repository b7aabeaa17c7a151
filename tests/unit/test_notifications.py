"""Unit tests for best-effort notification dispatch."""

import logging
from types import SimpleNamespace

import pytest

from rentledger.services.notification_service import LoggingSender, NotificationSender, NotificationService


class TestNotificationService:
    """Senders are called in order; failures are logged, never raised."""

    def test_default_sender_logs(self, caplog):
        service = NotificationService()

        with caplog.at_level(logging.INFO, logger="rentledger.services.notification_service"):
            assert service.dispatch("contract_activated", {"contract_id": 7}) is True

        assert isinstance(service.senders[0], LoggingSender)
        assert "notification.contract_activated: contract_id=7" in caplog.text

    def test_failing_sender_does_not_raise(self, recording_sender, failing_sender, caplog):
        service = NotificationService([failing_sender, recording_sender])

        with caplog.at_level(logging.ERROR):
            delivered = service.dispatch("receipt_generated", {"receipt_number": "REC-1-000001"})

        assert delivered is False
        # later senders still receive the event
        assert recording_sender.sent == [("receipt_generated", {"receipt_number": "REC-1-000001"})]
        assert "smtp unreachable" in caplog.text

    def test_overdue_alert_groups_contracts(self, recording_sender):
        service = NotificationService([recording_sender])
        items = [SimpleNamespace(contract_id=3), SimpleNamespace(contract_id=1), SimpleNamespace(contract_id=3)]

        service.notify_overdue(1, items)

        event, payload = recording_sender.sent[0]
        assert event == NotificationService.OVERDUE_ALERT
        assert payload == {"tenant_id": 1, "count": 3, "contracts": [1, 3]}

    def test_no_overdue_items_sends_nothing(self, recording_sender):
        assert NotificationService([recording_sender]).notify_overdue(1, []) is True
        assert recording_sender.sent == []


def test_sender_without_send_cannot_be_built():
    class Silent(NotificationSender):
        pass

    with pytest.raises(TypeError):
        Silent()
