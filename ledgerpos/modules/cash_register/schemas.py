"""
Esquemas Pydantic para sesiones de caja

Los montos no se restringen aquí: las reglas de negocio (monto > 0,
descripción requerida) las valida el servicio y responde con error estructurado.
"""

from pydantic import BaseModel, Field, field_validator
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import date, datetime
from enum import Enum


# ===== ENUMS =====

class CashMovementType(str, Enum):
    INCOME = "income"
    WITHDRAWAL = "withdrawal"


# ===== APERTURAS =====

class CashRegisterOpeningCreate(BaseModel):
    opening_date: date = Field(default_factory=date.today, description="Fecha de apertura")
    shift: str = Field("mañana", max_length=50, description="Turno (mañana, tarde, noche...)")
    initial_cash_amount: Decimal = Field(..., description="Efectivo inicial en caja (> 0)")
    notes: Optional[str] = Field(None, max_length=500, description="Notas de apertura")

    @field_validator('shift')
    @classmethod
    def validate_shift(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError('El turno no puede estar vacío')
        return cleaned


class CashRegisterOpeningOut(BaseModel):
    id: UUID
    opening_date: date
    shift: str
    opened_by: UUID
    opened_by_name: Optional[str] = None
    initial_cash_amount: Decimal
    notes: Optional[str] = None
    is_active: bool = Field(description="True mientras ningún cierre la referencia")
    created_at: datetime

    model_config = {"from_attributes": True}


class CashRegisterOpeningList(BaseModel):
    openings: List[CashRegisterOpeningOut]
    total: int
    limit: int
    offset: int


# ===== MOVIMIENTOS =====

class CashMovementCreate(BaseModel):
    movement_type: str = Field(..., description="income | withdrawal")
    amount: Decimal = Field(..., description="Monto (> 0)")
    description: str = Field("", max_length=500, description="Motivo del movimiento")


class CashMovementOut(BaseModel):
    id: UUID
    opening_id: UUID
    movement_type: CashMovementType
    amount: Decimal
    description: str
    created_by: UUID
    created_by_name: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CashMovementsSummary(BaseModel):
    opening_id: UUID
    total_income: Decimal
    total_withdrawals: Decimal
    net_movement: Decimal
    movements_count: int


# ===== CIERRES =====

class SalesBreakdown(BaseModel):
    total_sales_count: int = 0
    total_sales_amount: Decimal = Decimal("0")
    cash_sales: Decimal = Decimal("0")
    card_sales: Decimal = Decimal("0")
    transfer_sales: Decimal = Decimal("0")
    other_sales: Decimal = Decimal("0")


class CashRegisterClosureCreate(BaseModel):
    closure_date: date = Field(default_factory=date.today, description="Fecha del cierre")
    shift: Optional[str] = Field(None, max_length=50, description="Turno; si se omite se toma la última apertura del día")
    cash_counted: Optional[Decimal] = Field(None, description="Efectivo contado en el arqueo")
    notes: Optional[str] = Field(None, max_length=500, description="Notas de cierre")
    opening_id: Optional[UUID] = Field(None, description="Apertura a cerrar (opcional)")


class CashRegisterClosureOut(BaseModel):
    id: UUID
    opening_id: Optional[UUID] = None
    closure_date: date
    shift: Optional[str] = None
    closed_by: UUID
    closed_by_name: Optional[str] = None
    total_sales_count: int
    total_sales_amount: Decimal
    cash_sales: Decimal
    card_sales: Decimal
    transfer_sales: Decimal
    other_sales: Decimal
    cash_counted: Optional[Decimal] = None
    cash_difference: Optional[Decimal] = None
    notes: Optional[str] = None
    created_at: datetime

    model_config = {"from_attributes": True}


class CashRegisterClosureList(BaseModel):
    closures: List[CashRegisterClosureOut]
    total: int
    limit: int
    offset: int


# ===== ESTADO DE CAJA =====

class CashStatus(BaseModel):
    opening: CashRegisterOpeningOut
    initial_cash_amount: Decimal
    cash_sales: Decimal
    cash_supplier_payments: Decimal
    total_income: Decimal
    total_withdrawals: Decimal
    expected_cash: Decimal = Field(description="Inicial + ventas efectivo − pagos efectivo + ingresos − retiros")
