"""
Canal de notificaciones (fire-and-forget).

Los servicios de negocio llaman a dispatch_notification después de confirmar
su escritura; un fallo al encolar se registra en el log y nunca se propaga.
"""
import logging
from typing import Any, Dict, Optional
from uuid import UUID

from ledgerpos.modules.notifications import tasks

logger = logging.getLogger(__name__)


# Tipos de evento
PAYMENT_RECEIVED = "payment_received"
NEW_SALE = "new_sale"


def dispatch_notification(
    tenant_id: UUID,
    type: str,
    title: str,
    message: str,
    user_id: Optional[UUID] = None,
    link: Optional[str] = None,
    priority: str = "normal",
    metadata: Optional[Dict[str, Any]] = None
) -> bool:
    """Encola la creación de la notificación. Devuelve False si no se pudo encolar."""
    try:
        tasks.create_notification_task.delay(
            tenant_id=str(tenant_id),
            type=type,
            title=title,
            message=message,
            user_id=str(user_id) if user_id else None,
            link=link,
            priority=priority,
            metadata=metadata or {}
        )
        return True
    except Exception as e:
        logger.error(f"Error dispatching notification '{type}' for tenant {tenant_id}: {e}", exc_info=True)
        return False
