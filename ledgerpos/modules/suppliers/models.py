"""
Modelos de proveedores.

Los pagos a proveedores se registran contra el proveedor y opcionalmente contra
una orden de compra, por eso el saldo del proveedor se calcula de forma global.
"""

from ledgerpos.database.database import Base
from sqlalchemy import Column, String, Enum, Text
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from ledgerpos.common.mixins import TenantMixin, TimestampMixin
import enum


class SupplierStatus(enum.Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class Supplier(Base, TenantMixin, TimestampMixin):
    __tablename__ = "suppliers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    email = Column(String(150), nullable=True)
    phone = Column(String(50), nullable=True)
    tax_id = Column(String(30), nullable=True)
    status = Column(Enum(SupplierStatus), nullable=False, default=SupplierStatus.ACTIVE, index=True)
    notes = Column(Text, nullable=True)

    purchase_orders = relationship("PurchaseOrder", back_populates="supplier")
    payments = relationship("SupplierPayment", back_populates="supplier")

    @property
    def is_active(self) -> bool:
        return self.status == SupplierStatus.ACTIVE
