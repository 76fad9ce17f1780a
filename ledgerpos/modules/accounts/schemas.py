"""
Esquemas Pydantic para cuentas corrientes de clientes y proveedores
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
from datetime import datetime
from enum import Enum


class MovementKind(str, Enum):
    SALE = "sale"
    PURCHASE = "purchase"
    PAYMENT = "payment"


class PartyType(str, Enum):
    CUSTOMER = "customer"
    SUPPLIER = "supplier"


class AccountMovement(BaseModel):
    """Fila derivada de la cuenta corriente: un documento (débito) o un pago (crédito)"""
    id: UUID = Field(description="ID del documento o del pago")
    type: MovementKind = Field(description="Tipo de movimiento")
    date: datetime = Field(description="Fecha del movimiento")
    reference: str = Field(description="Número de documento o referencia del pago")
    description: str = Field(description="Descripción")
    debit: Decimal = Field(Decimal("0"), description="Débito (documento)")
    credit: Decimal = Field(Decimal("0"), description="Crédito (pago)")
    balance: Decimal = Field(Decimal("0"), description="Saldo acumulado hasta este movimiento")


class AccountBalance(BaseModel):
    party_id: UUID
    party_type: PartyType
    balance: Decimal = Field(description="Saldo actual (negativo = saldo a favor)")


class StatementSummary(BaseModel):
    total_debits: Decimal
    total_credits: Decimal
    movements_count: int
    oldest_movement: Optional[datetime] = None
    last_movement: Optional[datetime] = None


class AccountStatement(BaseModel):
    party_id: UUID
    party_type: PartyType
    party_name: str
    current_balance: Decimal
    credit_limit: Optional[Decimal] = None
    available_credit: Optional[Decimal] = None
    movements: List[AccountMovement]
    summary: StatementSummary
