"""
Aplicación de pagos

Registra un pago parcial o total contra un documento y actualiza su estado de pago:
1. Valida monto > 0 y método de pago antes de tocar la base
2. Carga el documento y sus pagos previos
3. Inserta el pago (primera escritura)
4. Recalcula el estado con pagado previo + monto (segunda escritura)
5. Notifica "payment_received" sin bloquear (ventas y reparaciones)

Las dos escrituras no comparten transacción: si la segunda falla el pago queda
registrado con el estado anterior. Dos pagos concurrentes sobre el mismo
documento pueden competir en el cálculo del pagado acumulado.
No existe anulación ni edición de pagos.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional, Type
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from ledgerpos.common.errors import (
    ActionResult, ActionSuccess, ErrorContext, handle_server_error,
    not_found_error, validation_error
)
from ledgerpos.modules.notifications import service as notification_service
from ledgerpos.modules.payments.schemas import (
    DocumentType, PaymentApplicationOut, PaymentCreate, PaymentList, PaymentOut
)
from ledgerpos.modules.purchases.models import PurchaseOrder, SupplierPayment
from ledgerpos.modules.repairs.models import RepairOrder, RepairPayment
from ledgerpos.modules.sales.models import Sale, SalePayment
from ledgerpos.modules.settlement.balance import derive_payment_status, sum_payments, to_decimal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PayableDocument:
    """Cómo se persiste un pago para cada tipo de documento"""
    type: DocumentType
    model: Type
    payment_model: Type
    foreign_key: str
    label: str
    not_found_message: str
    link: str
    notify: bool


SALE = PayableDocument(
    type=DocumentType.SALE, model=Sale, payment_model=SalePayment,
    foreign_key="sale_id", label="venta", not_found_message="Venta no encontrada",
    link="/sales/{id}", notify=True
)
PURCHASE_ORDER = PayableDocument(
    type=DocumentType.PURCHASE_ORDER, model=PurchaseOrder, payment_model=SupplierPayment,
    foreign_key="purchase_order_id", label="orden de compra",
    not_found_message="Orden de compra no encontrada",
    link="/purchase-orders/{id}", notify=False
)
REPAIR_ORDER = PayableDocument(
    type=DocumentType.REPAIR_ORDER, model=RepairOrder, payment_model=RepairPayment,
    foreign_key="repair_order_id", label="reparación",
    not_found_message="Orden de reparación no encontrada",
    link="/repairs/{id}", notify=True
)

DOCUMENTS = {kind.type: kind for kind in (SALE, PURCHASE_ORDER, REPAIR_ORDER)}


def to_payment_out(kind: PayableDocument, payment) -> PaymentOut:
    return PaymentOut(
        id=payment.id,
        document_id=getattr(payment, kind.foreign_key),
        document_type=kind.type,
        amount=payment.amount,
        payment_date=payment.payment_date,
        payment_method=payment.payment_method,
        reference_number=payment.reference_number,
        notes=payment.notes,
        created_by=payment.created_by
    )


class PaymentService:
    """Servicio de aplicación de pagos a documentos"""

    def __init__(self, db: Session):
        self.db = db

    def _get_document(self, kind: PayableDocument, tenant_id: UUID, document_id: UUID):
        return self.db.query(kind.model).options(
            selectinload(kind.model.payments)
        ).filter(
            kind.model.id == document_id,
            kind.model.tenant_id == tenant_id
        ).first()

    def add_payment(self, document_type: DocumentType, document_id: UUID, data: PaymentCreate,
                    tenant_id: UUID, user_id: UUID) -> ActionResult:
        """Registrar un pago y recalcular el estado de pago del documento"""
        kind = DOCUMENTS[DocumentType(document_type)]

        if data.amount is None or data.amount <= 0:
            return validation_error("El monto debe ser mayor a cero")
        if not data.payment_method or not data.payment_method.strip():
            return validation_error("El método de pago es requerido")

        context = ErrorContext(
            operation=f"add_{kind.type.value}_payment", tenant_id=tenant_id,
            user_id=user_id, entity_id=document_id
        )

        try:
            document = self._get_document(kind, tenant_id, document_id)
            if not document:
                return not_found_error(kind.not_found_message)
            if kind is PURCHASE_ORDER and not document.supplier_id:
                return validation_error("La orden de compra no tiene proveedor asignado")

            total = to_decimal(document.total)
            prior_paid = sum_payments(document.payments)
            amount = to_decimal(data.amount)

            payment = kind.payment_model(
                tenant_id=tenant_id,
                amount=amount,
                payment_date=data.payment_date or datetime.now(),
                payment_method=data.payment_method.strip(),
                reference_number=data.reference_number,
                notes=data.notes,
                created_by=user_id
            )
            setattr(payment, kind.foreign_key, document.id)
            if kind is PURCHASE_ORDER:
                payment.supplier_id = document.supplier_id

            self.db.add(payment)
            self.db.commit()
            self.db.refresh(payment)

        except Exception as e:
            self.db.rollback()
            return handle_server_error(e, context, "Error al registrar el pago")

        new_paid = prior_paid + amount
        new_status = derive_payment_status(new_paid, total)

        try:
            document.payment_status = new_status
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(
                f"Payment {payment.id} recorded but payment_status update failed for "
                f"{kind.type.value} {document_id}"
            )
            return handle_server_error(e, context, "Error al actualizar el estado de pago")

        warning = None
        if new_paid > total:
            warning = f"El pago supera el total del documento. Saldo a favor: {new_paid - total:.2f}"
            logger.warning(
                f"Overpayment on {kind.type.value} {document_id} (tenant {tenant_id}): "
                f"paid {new_paid} of {total}"
            )

        logger.info(
            f"Payment {payment.id} of {amount} applied to {kind.type.value} {document_id}: "
            f"status {new_status.value}"
        )

        if kind.notify:
            self._notify_payment_received(kind, document, payment, tenant_id)

        return ActionSuccess(
            data=PaymentApplicationOut(
                payment=to_payment_out(kind, payment),
                document_number=document.document_number,
                total=total,
                paid_amount=new_paid,
                balance=total - new_paid,
                payment_status=new_status.value
            ),
            warning=warning
        )

    def _notify_payment_received(self, kind: PayableDocument, document, payment, tenant_id: UUID) -> None:
        notification_service.dispatch_notification(
            tenant_id=tenant_id,
            type=notification_service.PAYMENT_RECEIVED,
            title="Pago Recibido",
            message=(
                f"Se registró un pago de $ {payment.amount:.2f} ({payment.payment_method}) "
                f"para la {kind.label} {document.document_number}"
            ),
            link=kind.link.format(id=document.id),
            metadata={
                "document_type": kind.type.value,
                "document_id": str(document.id),
                "payment_id": str(payment.id),
                "amount": str(payment.amount),
                "payment_method": payment.payment_method,
            }
        )

    # ===== ATAJOS POR DOCUMENTO =====

    def add_sale_payment(self, sale_id: UUID, data: PaymentCreate,
                         tenant_id: UUID, user_id: UUID) -> ActionResult:
        return self.add_payment(DocumentType.SALE, sale_id, data, tenant_id, user_id)

    def add_supplier_payment(self, purchase_order_id: UUID, data: PaymentCreate,
                             tenant_id: UUID, user_id: UUID) -> ActionResult:
        return self.add_payment(DocumentType.PURCHASE_ORDER, purchase_order_id, data, tenant_id, user_id)

    def add_repair_payment(self, repair_order_id: UUID, data: PaymentCreate,
                           tenant_id: UUID, user_id: UUID) -> ActionResult:
        return self.add_payment(DocumentType.REPAIR_ORDER, repair_order_id, data, tenant_id, user_id)

    # ===== CONSULTAS =====

    def list_payments(self, document_type: DocumentType, document_id: UUID,
                      tenant_id: UUID) -> Optional[PaymentList]:
        """Pagos del documento; None si el documento no existe en el tenant"""
        kind = DOCUMENTS[DocumentType(document_type)]
        document = self._get_document(kind, tenant_id, document_id)
        if not document:
            return None

        return PaymentList(
            document_id=document.id,
            document_type=kind.type,
            payments=[to_payment_out(kind, payment) for payment in document.payments],
            total_paid=sum_payments(document.payments)
        )
