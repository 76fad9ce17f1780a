"""
Esquemas Pydantic para la liquidación de cuentas (cuentas por cobrar / por pagar)
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from datetime import date, datetime
from enum import Enum


class ExportFormat(str, Enum):
    XLSX = "xlsx"
    PDF = "pdf"


class AccountReceivable(BaseModel):
    id: UUID = Field(description="ID de la venta")
    sale_number: str = Field(description="Número de venta")
    customer_name: str = Field(description="Cliente (o 'Cliente General')")
    sale_date: datetime = Field(description="Fecha de la venta")
    total: Decimal = Field(description="Total de la venta")
    paid: Decimal = Field(description="Monto pagado")
    balance: Decimal = Field(description="Saldo pendiente")
    days_overdue: int = Field(description="Días transcurridos desde la venta al corte")


class AccountPayable(BaseModel):
    id: UUID = Field(description="ID de la orden de compra")
    order_number: str = Field(description="Número de orden")
    supplier_name: str = Field(description="Proveedor (o 'Sin proveedor')")
    order_date: datetime = Field(description="Fecha de la orden")
    total: Decimal = Field(description="Total de la orden")
    paid: Decimal = Field(description="Monto pagado")
    balance: Decimal = Field(description="Saldo pendiente")
    days_overdue: int = Field(description="Días transcurridos desde la orden al corte")


class SettlementSummary(BaseModel):
    total_receivable: Decimal = Field(description="Total por cobrar")
    total_payable: Decimal = Field(description="Total por pagar")
    net_balance: Decimal = Field(description="Por cobrar − por pagar")


class AgingBuckets(BaseModel):
    current: Decimal = Field(Decimal("0"), description="Hasta 30 días")
    days_31_to_60: Decimal = Field(Decimal("0"), description="31 a 60 días")
    days_61_to_90: Decimal = Field(Decimal("0"), description="61 a 90 días")
    over_90: Decimal = Field(Decimal("0"), description="Más de 90 días")


class SettlementReport(BaseModel):
    cutoff_date: date = Field(description="Fecha de corte")
    currency: str = Field(description="Moneda")
    summary: SettlementSummary
    accounts_receivable: List[AccountReceivable]
    accounts_payable: List[AccountPayable]
    receivable_aging: AgingBuckets
    payable_aging: AgingBuckets
    generated_at: Optional[datetime] = Field(None, description="Fecha de generación")
