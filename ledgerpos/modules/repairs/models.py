"""
Modelos SQLAlchemy para órdenes de reparación

El total de una reparación no se almacena: es mano de obra + Σ subtotales de repuestos.
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


class RepairStatus(enum.Enum):
    RECEIVED = "received"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class RepairOrder(Base, TenantMixin, TimestampMixin):
    __tablename__ = "repair_orders"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    order_number = Column(String(50), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)
    received_date = Column(DateTime, nullable=False, default=datetime.now)
    device = Column(String(200), nullable=True)
    status = Column(Enum(RepairStatus), nullable=False, default=RepairStatus.RECEIVED)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    labor_cost = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)

    customer = relationship("Customer", back_populates="repair_orders")
    items = relationship("RepairItem", back_populates="repair_order", cascade="all, delete-orphan")
    payments = relationship(
        "RepairPayment", back_populates="repair_order",
        cascade="all, delete-orphan", order_by="RepairPayment.payment_date"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "order_number", name="uq_repair_order_tenant_number"),
    )

    @property
    def total(self):
        """Mano de obra + repuestos"""
        return (self.labor_cost or 0) + sum((item.subtotal or 0 for item in self.items), 0)

    @property
    def document_number(self) -> str:
        return self.order_number

    @property
    def document_date(self) -> datetime:
        return self.received_date

    @property
    def party_name(self):
        return self.customer.name if self.customer else None

    @property
    def paid_amount(self):
        return sum((payment.amount for payment in self.payments), 0)

    @property
    def balance_due(self):
        return self.total - self.paid_amount


class RepairItem(Base, TenantMixin, TimestampMixin):
    __tablename__ = "repair_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    repair_order_id = Column(UUID(as_uuid=True), ForeignKey("repair_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(255), nullable=False)
    quantity = Column(Numeric(15, 2), nullable=False, default=1)
    unit_price = Column(Numeric(15, 2), nullable=False, default=0)
    subtotal = Column(Numeric(15, 2), nullable=False, default=0)

    repair_order = relationship("RepairOrder", back_populates="items")


class RepairPayment(Base, TenantMixin, TimestampMixin):
    __tablename__ = "repair_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    repair_order_id = Column(UUID(as_uuid=True), ForeignKey("repair_orders.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(DateTime, nullable=False, default=datetime.now)
    payment_method = Column(String(50), nullable=False)
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)

    repair_order = relationship("RepairOrder", back_populates="payments")
