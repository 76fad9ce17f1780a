"""
Modelos de clientes.

Un cliente acumula ventas y órdenes de reparación; su saldo de cuenta corriente
se deriva de esos documentos (ver módulo accounts).
"""

from ledgerpos.database.database import Base
from sqlalchemy import Column, String, Numeric, Enum, Text
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from ledgerpos.common.mixins import TenantMixin, TimestampMixin
import enum


class CustomerStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    BLOCKED = "blocked"     # Bloqueado por deuda


class Customer(Base, TenantMixin, TimestampMixin):
    __tablename__ = "customers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    email = Column(String(150), nullable=True)
    phone = Column(String(50), nullable=True)
    tax_id = Column(String(30), nullable=True)
    credit_limit = Column(Numeric(15, 2), nullable=True)
    status = Column(Enum(CustomerStatus), nullable=False, default=CustomerStatus.ACTIVE, index=True)
    notes = Column(Text, nullable=True)

    sales = relationship("Sale", back_populates="customer")
    repair_orders = relationship("RepairOrder", back_populates="customer")

    @property
    def is_active(self) -> bool:
        return self.status == CustomerStatus.ACTIVE
