"""
Tests para el canal de notificaciones
"""

from uuid import uuid4

from ledgerpos.modules.notifications import service as notification_service
from ledgerpos.modules.notifications import tasks as notification_tasks
from ledgerpos.modules.notifications.models import Notification
from ledgerpos.modules.notifications.tasks import create_notification_task


class TestDispatchNotification:
    """Tests para dispatch_notification"""

    def test_ids_are_sent_as_strings(self, sent_notifications):
        tenant_id, user_id = uuid4(), uuid4()

        queued = notification_service.dispatch_notification(
            tenant_id=tenant_id, type=notification_service.NEW_SALE,
            title="Nueva Venta", message="Venta V-000001", user_id=user_id
        )

        assert queued is True
        assert sent_notifications[0]["tenant_id"] == str(tenant_id)
        assert sent_notifications[0]["user_id"] == str(user_id)
        assert sent_notifications[0]["metadata"] == {}

    def test_broker_failure_is_logged(self, monkeypatch, caplog):
        class BrokenTask:
            def delay(self, **kwargs):
                raise ConnectionError("redis unavailable")

        monkeypatch.setattr(notification_tasks, "create_notification_task", BrokenTask())

        queued = notification_service.dispatch_notification(
            tenant_id=uuid4(), type=notification_service.PAYMENT_RECEIVED,
            title="Pago Recibido", message="Pago"
        )

        assert queued is False
        assert "payment_received" in caplog.text


class TestCreateNotificationTask:
    """La tarea persiste la notificación con su metadata"""

    def test_persists_notification(self, monkeypatch, session_factory, db_session, tenant_id):
        monkeypatch.setattr(notification_tasks, "SessionLocal", session_factory)

        result = create_notification_task(
            tenant_id=str(tenant_id), type="payment_received", title="Pago Recibido",
            message="Pago de $ 40.00", link="/sales/1", metadata={"amount": "40.00"}
        )

        assert result["status"] == "success"
        notification = db_session.query(Notification).one()
        assert notification.tenant_id == tenant_id
        assert notification.extra_data == {"amount": "40.00"}
        assert notification.is_read is False
