"""
Modelos SQLAlchemy para sesiones de caja

Una sesión de caja queda delimitada por:
- CashRegisterOpening: apertura con monto inicial
- CashMovement: ingresos y retiros manuales mientras la apertura está activa
- CashRegisterClosure: cierre con totales del día por método de pago

Una apertura está activa mientras ningún cierre la referencia. El cierre
referencia a lo sumo una apertura (opening_id único) y la deja terminal.
"""

from ledgerpos.database.database import Base
from sqlalchemy import Column, String, Date, ForeignKey, Numeric, Enum, Text, Integer
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from ledgerpos.common.mixins import TenantMixin, TimestampMixin
import enum


# ===== ENUMS =====

class CashMovementType(enum.Enum):
    """Tipos de movimiento manual de caja"""
    INCOME = "income"           # Ingreso de efectivo
    WITHDRAWAL = "withdrawal"   # Retiro de efectivo


# ===== MODELOS =====

class CashRegisterOpening(Base, TenantMixin, TimestampMixin):
    __tablename__ = "cash_register_openings"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    opening_date = Column(Date, nullable=False, index=True)
    shift = Column(String(50), nullable=False)
    opened_by = Column(UUID(as_uuid=True), nullable=False)
    opened_by_name = Column(String(150), nullable=True)
    initial_cash_amount = Column(Numeric(15, 2), nullable=False)
    notes = Column(Text, nullable=True)

    closure = relationship("CashRegisterClosure", back_populates="opening", uselist=False)
    movements = relationship(
        "CashMovement", back_populates="opening",
        cascade="all, delete-orphan", order_by="CashMovement.created_at"
    )

    @property
    def is_active(self) -> bool:
        return self.closure is None


class CashRegisterClosure(Base, TenantMixin, TimestampMixin):
    __tablename__ = "cash_register_closures"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    opening_id = Column(UUID(as_uuid=True), ForeignKey("cash_register_openings.id"), nullable=True, unique=True)
    closure_date = Column(Date, nullable=False, index=True)
    shift = Column(String(50), nullable=True)
    closed_by = Column(UUID(as_uuid=True), nullable=False)
    closed_by_name = Column(String(150), nullable=True)

    # Totales del día
    total_sales_count = Column(Integer, nullable=False, default=0)
    total_sales_amount = Column(Numeric(15, 2), nullable=False, default=0)
    cash_sales = Column(Numeric(15, 2), nullable=False, default=0)
    card_sales = Column(Numeric(15, 2), nullable=False, default=0)
    transfer_sales = Column(Numeric(15, 2), nullable=False, default=0)
    other_sales = Column(Numeric(15, 2), nullable=False, default=0)

    # Arqueo
    cash_counted = Column(Numeric(15, 2), nullable=True)
    cash_difference = Column(Numeric(15, 2), nullable=True)  # cash_counted - cash_sales
    notes = Column(Text, nullable=True)

    opening = relationship("CashRegisterOpening", back_populates="closure")


class CashMovement(Base, TenantMixin, TimestampMixin):
    __tablename__ = "cash_movements"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    opening_id = Column(UUID(as_uuid=True), ForeignKey("cash_register_openings.id"), nullable=False, index=True)
    movement_type = Column(Enum(CashMovementType), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)  # Siempre positivo
    description = Column(Text, nullable=False)
    created_by = Column(UUID(as_uuid=True), nullable=False)
    created_by_name = Column(String(150), nullable=True)

    opening = relationship("CashRegisterOpening", back_populates="movements")

    @property
    def signed_amount(self):
        """Monto con signo: los retiros restan"""
        return self.amount if self.movement_type == CashMovementType.INCOME else -self.amount
