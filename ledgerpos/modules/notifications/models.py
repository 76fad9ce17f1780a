from ledgerpos.database.database import Base
from sqlalchemy import Column, String, Boolean, Text, JSON
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from ledgerpos.common.mixins import TenantMixin, TimestampMixin


class Notification(Base, TenantMixin, TimestampMixin):
    """Notificación in-app creada por la tarea de Celery"""
    __tablename__ = "notifications"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    user_id = Column(UUID(as_uuid=True), nullable=True, index=True)  # None = toda la empresa
    type = Column(String(50), nullable=False, index=True)
    title = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    link = Column(String(255), nullable=True)
    priority = Column(String(20), nullable=False, default="normal")
    # "metadata" está reservado por la API declarativa
    extra_data = Column("metadata", JSON, nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
