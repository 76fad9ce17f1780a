"""
Tareas asíncronas de Celery para notificaciones in-app.
"""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from ledgerpos.core.celery import celery_app
from ledgerpos.database.database import SessionLocal
from ledgerpos.modules.notifications.models import Notification

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def create_notification_task(
    self,
    tenant_id: str,
    type: str,
    title: str,
    message: str,
    user_id: Optional[str] = None,
    link: Optional[str] = None,
    priority: str = "normal",
    metadata: Optional[Dict[str, Any]] = None
):
    """
    Persiste una notificación. Los ids llegan como str (serializer json).
    """
    db = SessionLocal()
    try:
        notification = Notification(
            tenant_id=UUID(tenant_id),
            user_id=UUID(user_id) if user_id else None,
            type=type,
            title=title,
            message=message,
            link=link,
            priority=priority,
            extra_data=metadata or {}
        )
        db.add(notification)
        db.commit()
        logger.info(f"Notification '{type}' created for tenant {tenant_id}")
        return {"status": "success", "notification_id": str(notification.id)}

    except Exception as exc:
        db.rollback()
        logger.error(f"Notification creation failed: {str(exc)}")

        if self.request.retries < self.max_retries:
            raise self.retry(exc=exc, countdown=30 * (2 ** self.request.retries))

        return {"status": "failed", "error": str(exc)}
    finally:
        db.close()
