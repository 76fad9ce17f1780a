"""
Esquemas Pydantic para la aplicación de pagos a documentos
(ventas, órdenes de compra y órdenes de reparación)
"""

from pydantic import BaseModel, Field
from decimal import Decimal
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from enum import Enum


class DocumentType(str, Enum):
    SALE = "sale"
    PURCHASE_ORDER = "purchase_order"
    REPAIR_ORDER = "repair_order"


class PaymentStatus(str, Enum):
    PENDING = "pending"
    PARTIAL = "partial"
    PAID = "paid"


class PaymentCreate(BaseModel):
    """El monto y el método se validan en el servicio (respuesta estructurada)"""
    amount: Decimal = Field(..., description="Monto del pago (> 0)")
    payment_method: str = Field("", max_length=50, description="Método de pago (efectivo, tarjeta, transferencia...)")
    reference_number: Optional[str] = Field(None, max_length=100, description="Referencia (comprobante, transacción)")
    notes: Optional[str] = Field(None, max_length=500, description="Notas")
    payment_date: Optional[datetime] = Field(None, description="Fecha del pago (por defecto ahora)")


class PaymentOut(BaseModel):
    id: UUID
    document_id: UUID
    document_type: DocumentType
    amount: Decimal
    payment_date: datetime
    payment_method: str
    reference_number: Optional[str] = None
    notes: Optional[str] = None
    created_by: Optional[UUID] = None


class PaymentApplicationOut(BaseModel):
    payment: PaymentOut
    document_number: str
    total: Decimal = Field(description="Total del documento")
    paid_amount: Decimal = Field(description="Pagado acumulado incluyendo este pago")
    balance: Decimal = Field(description="Saldo restante (negativo = sobrepago)")
    payment_status: PaymentStatus


class PaymentList(BaseModel):
    document_id: UUID
    document_type: DocumentType
    payments: List[PaymentOut]
    total_paid: Decimal
