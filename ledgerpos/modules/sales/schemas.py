from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from enum import Enum


class SaleStatus(str, Enum):
    DRAFT = "draft"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SaleItemCreate(BaseModel):
    product_id: UUID = Field(..., description="ID del producto")
    quantity: Decimal = Field(..., description="Cantidad (> 0)")
    unit_price: Optional[Decimal] = Field(None, description="Precio unitario; por defecto el precio del producto")


class SaleCreate(BaseModel):
    sale_number: Optional[str] = Field(None, max_length=50, description="Número de venta; se genera si se omite")
    customer_id: Optional[UUID] = Field(None, description="Cliente (vacío = Cliente General)")
    sale_date: Optional[datetime] = Field(None, description="Fecha de venta (por defecto ahora)")
    status: SaleStatus = Field(SaleStatus.COMPLETED, description="Estado de la venta")
    payment_method: Optional[str] = Field(None, max_length=50, description="Método de pago declarado")
    items: List[SaleItemCreate] = Field(default_factory=list, description="Líneas de la venta")
    notes: Optional[str] = Field(None, max_length=500)


class SaleItemOut(BaseModel):
    id: UUID
    product_id: UUID
    quantity: Decimal
    unit_price: Decimal

    model_config = {"from_attributes": True}


class SaleOut(BaseModel):
    id: UUID
    sale_number: str
    customer_id: Optional[UUID] = None
    sale_date: datetime
    status: SaleStatus
    payment_status: str
    payment_method: Optional[str] = None
    total: Decimal
    paid_amount: Decimal
    balance_due: Decimal
    items: List[SaleItemOut] = []
    notes: Optional[str] = None
