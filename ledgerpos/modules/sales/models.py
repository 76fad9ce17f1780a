"""
Modelos SQLAlchemy para ventas

- Sale: documento de venta con total, estado y estado de pago derivado
- SaleItem: líneas de la venta (base de la utilidad mensual)
- SalePayment: pagos registrados contra la venta (solo inserción, nunca se editan)

Arquitectura multi-tenant: todas las tablas incluyen tenant_id
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


class SaleStatus(enum.Enum):
    DRAFT = "draft"             # Borrador
    CONFIRMED = "confirmed"     # Confirmada
    COMPLETED = "completed"     # Completada (entra en el cierre de caja)
    CANCELLED = "cancelled"     # Anulada


# Ventas que cuentan como ingreso en ventas diarias y utilidad mensual
REVENUE_STATUSES = (SaleStatus.CONFIRMED, SaleStatus.COMPLETED)


class Sale(Base, TenantMixin, TimestampMixin):
    __tablename__ = "sales"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    sale_number = Column(String(50), nullable=False)
    customer_id = Column(UUID(as_uuid=True), ForeignKey("customers.id"), nullable=True, index=True)
    sale_date = Column(DateTime, nullable=False, default=datetime.now, index=True)
    status = Column(Enum(SaleStatus), nullable=False, default=SaleStatus.COMPLETED, index=True)
    payment_status = Column(Enum(PaymentStatus), nullable=False, default=PaymentStatus.PENDING, index=True)
    payment_method = Column(String(50), nullable=True)  # Método declarado al vender
    total = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)

    customer = relationship("Customer", back_populates="sales")
    items = relationship("SaleItem", back_populates="sale", cascade="all, delete-orphan")
    payments = relationship(
        "SalePayment", back_populates="sale",
        cascade="all, delete-orphan", order_by="SalePayment.payment_date"
    )

    __table_args__ = (
        UniqueConstraint("tenant_id", "sale_number", name="uq_sale_tenant_number"),
    )

    @property
    def document_number(self) -> str:
        return self.sale_number

    @property
    def document_date(self) -> datetime:
        return self.sale_date

    @property
    def party_name(self):
        return self.customer.name if self.customer else None

    @property
    def paid_amount(self):
        """Calcular monto pagado"""
        return sum((payment.amount for payment in self.payments), 0)

    @property
    def balance_due(self):
        """Calcular saldo pendiente (negativo si hubo sobrepago)"""
        return self.total - self.paid_amount


class SaleItem(Base, TenantMixin, TimestampMixin):
    __tablename__ = "sale_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    sale_id = Column(UUID(as_uuid=True), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = Column(UUID(as_uuid=True), ForeignKey("products.id"), nullable=False, index=True)
    quantity = Column(Numeric(15, 2), nullable=False, default=1)
    unit_price = Column(Numeric(15, 2), nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")

    @property
    def subtotal(self):
        return self.unit_price * self.quantity


class SalePayment(Base, TenantMixin, TimestampMixin):
    __tablename__ = "sale_payments"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    sale_id = Column(UUID(as_uuid=True), ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    payment_date = Column(DateTime, nullable=False, default=datetime.now)
    payment_method = Column(String(50), nullable=False)
    reference_number = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(UUID(as_uuid=True), nullable=True)

    sale = relationship("Sale", back_populates="payments")
