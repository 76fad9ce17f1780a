"""
Modelos SQLAlchemy para compras

- PurchaseOrder: orden de compra a un proveedor
- SupplierPayment: pago a proveedor, ligado al proveedor y opcionalmente a una orden

Los pagos se registran contra el proveedor; la orden es una referencia opcional.
"""

from ledgerpos.database.database import Base
from sqlalchemy import Column, String, DateTime, ForeignKey, Numeric, Enum, Text, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from ledgerpos.common.mixins import TenantMixin, TimestampMixin
from ledgerpos.common.enums import PaymentStatus
import enum


class PurchaseOrderStatus(enum.Enum):
    PENDING = "pending"
    CONFIRMED = "confirmed"
    RECEIVED = "received"
    CANCELLED = "cancelled"


class PurchaseOrder(Base, TenantMixin, TimestampMixin):
    __tablename__ = "purchase_orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    order_number = Column(String(50), nullable=False)
    supplier_id = Column(UUID(as_uuid=True), ForeignKey("suppliers.id"), nullable=True, index=True)
    order_date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    status = Column(Enum(PurchaseOrderStatus), nullable=False, default=PurchaseOrderStatus.PENDING)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True)
    total = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)

    supplier = relationship("Supplier", back_populates="purchase_orders")
    payments = relationship(
        "SupplierPayment", back_populates="purchase_order", order_by="SupplierPayment.payment_date"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "order_number", name="uq_purchase_order_tenant_number"),
    )

    @property
    def document_number(self) -> str:
        return self.order_number

    @property
    def document_date(self) -> datetime:
        return self.order_date

    @property
    def party_name(self):
        return self.supplier.name if self.supplier else None

    @property
    def paid_amount(self):
        return sum((payment.amount for payment in self.payments), 0)

    @property
    def balance_due(self):
        return self.total - self.paid_amount


class SupplierPayment(Base, TenantMixin, TimestampMixin):
    __tablename__ = "supplier_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    supplier_id = Column(UUID(as_uuid=True), ForeignKey("suppliers.id"), nullable=False, index=True)
    purchase_order_id = Column(UUID(as_uuid=True), ForeignKey("purchase_orders.id"), nullable=True, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(DateTime, nullable=False, default=datetime.now)
    payment_method = Column(String(50), nullable=False)
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)

    supplier = relationship("Supplier", back_populates="payments")
    purchase_order = relationship("PurchaseOrder", back_populates="payments")
