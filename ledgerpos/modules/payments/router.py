"""
Routers de pagos sobre documentos

POST registra un pago y recalcula el estado de pago del documento.
GET lista los pagos del documento.
"""

from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from ledgerpos.common.errors import ActionSuccess, to_http_response
from ledgerpos.database.database import get_db
from ledgerpos.modules.auth.dependencies import AuthDependencies
from ledgerpos.modules.auth.schemas import AuthContext
from ledgerpos.modules.payments.schemas import DocumentType, PaymentCreate, PaymentList
from ledgerpos.modules.payments.service import PaymentService

PAYMENT_ROLES = ["owner", "admin", "seller", "cashier", "accountant"]

payments_router = APIRouter(tags=["Payments"])


def _apply(document_type: DocumentType, document_id: UUID, payment_data: PaymentCreate,
           auth_context: AuthContext, db: Session):
    result = PaymentService(db).add_payment(
        document_type, document_id, payment_data, auth_context.tenant_id, auth_context.user_id
    )
    if not result.success:
        return to_http_response(result)
    return result


def _list(document_type: DocumentType, document_id: UUID, auth_context: AuthContext, db: Session):
    payments = PaymentService(db).list_payments(document_type, document_id, auth_context.tenant_id)
    if payments is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Documento no encontrado")
    return payments


# ===== VENTAS =====

@payments_router.post("/sales/{sale_id}/payments", response_model=ActionSuccess, status_code=status.HTTP_201_CREATED)
async def add_sale_payment(
    payment_data: PaymentCreate,
    sale_id: UUID = Path(..., description="ID de la venta"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(PAYMENT_ROLES)),
    db: Session = Depends(get_db)
):
    """
    Registrar un pago parcial o total de una venta.

    - **amount**: mayor a cero; se permite sobrepago (se devuelve una advertencia)
    - **payment_method**: requerido
    - El estado de pago pasa a **partial** o **paid** según el acumulado
    """
    return _apply(DocumentType.SALE, sale_id, payment_data, auth_context, db)


@payments_router.get("/sales/{sale_id}/payments", response_model=PaymentList)
async def list_sale_payments(
    sale_id: UUID = Path(..., description="ID de la venta"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(PAYMENT_ROLES)),
    db: Session = Depends(get_db)
):
    return _list(DocumentType.SALE, sale_id, auth_context, db)


# ===== ÓRDENES DE COMPRA =====

@payments_router.post("/purchase-orders/{order_id}/payments", response_model=ActionSuccess, status_code=status.HTTP_201_CREATED)
async def add_supplier_payment(
    payment_data: PaymentCreate,
    order_id: UUID = Path(..., description="ID de la orden de compra"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["owner", "admin", "accountant"])),
    db: Session = Depends(get_db)
):
    """Registrar un pago al proveedor contra una orden de compra"""
    return _apply(DocumentType.PURCHASE_ORDER, order_id, payment_data, auth_context, db)


@payments_router.get("/purchase-orders/{order_id}/payments", response_model=PaymentList)
async def list_purchase_order_payments(
    order_id: UUID = Path(..., description="ID de la orden de compra"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(PAYMENT_ROLES)),
    db: Session = Depends(get_db)
):
    return _list(DocumentType.PURCHASE_ORDER, order_id, auth_context, db)


# ===== REPARACIONES =====

@payments_router.post("/repair-orders/{order_id}/payments", response_model=ActionSuccess, status_code=status.HTTP_201_CREATED)
async def add_repair_payment(
    payment_data: PaymentCreate,
    order_id: UUID = Path(..., description="ID de la orden de reparación"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(PAYMENT_ROLES)),
    db: Session = Depends(get_db)
):
    """Registrar un pago de una reparación (total = mano de obra + repuestos)"""
    return _apply(DocumentType.REPAIR_ORDER, order_id, payment_data, auth_context, db)


@payments_router.get("/repair-orders/{order_id}/payments", response_model=PaymentList)
async def list_repair_order_payments(
    order_id: UUID = Path(..., description="ID de la orden de reparación"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(PAYMENT_ROLES)),
    db: Session = Depends(get_db)
):
    return _list(DocumentType.REPAIR_ORDER, order_id, auth_context, db)
