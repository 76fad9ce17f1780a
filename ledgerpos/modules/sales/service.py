"""
Servicio de ventas

Alta de ventas con sus líneas (el total se calcula a partir de las líneas) y
notificación "new_sale". El estado de pago inicia en pending y solo lo cambia
la aplicación de pagos.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from ledgerpos.common.enums import PaymentStatus
from ledgerpos.common.errors import (
    ActionResult, ActionSuccess, ErrorContext, handle_server_error,
    not_found_error, validation_error
)
from ledgerpos.modules.customers.models import Customer
from ledgerpos.modules.notifications import service as notification_service
from ledgerpos.modules.products.models import Product
from ledgerpos.modules.sales.models import Sale, SaleItem, SaleStatus
from ledgerpos.modules.sales.schemas import SaleCreate, SaleItemOut, SaleOut
from ledgerpos.modules.settlement.balance import sum_payments, to_decimal

logger = logging.getLogger(__name__)


def to_sale_out(sale: Sale) -> SaleOut:
    paid = sum_payments(sale.payments)
    return SaleOut(
        id=sale.id,
        sale_number=sale.sale_number,
        customer_id=sale.customer_id,
        sale_date=sale.sale_date,
        status=sale.status.value,
        payment_status=sale.payment_status.value,
        payment_method=sale.payment_method,
        total=sale.total,
        paid_amount=paid,
        balance_due=to_decimal(sale.total) - paid,
        items=[SaleItemOut.model_validate(item) for item in sale.items],
        notes=sale.notes
    )


class SaleService:
    """Servicio de alta y consulta de ventas"""

    def __init__(self, db: Session):
        self.db = db

    def _next_sale_number(self, tenant_id: UUID) -> str:
        count = self.db.query(Sale).filter(Sale.tenant_id == tenant_id).count()
        return f"V-{count + 1:06d}"

    def get_sale(self, tenant_id: UUID, sale_id: UUID) -> Optional[Sale]:
        return self.db.query(Sale).options(
            selectinload(Sale.items),
            selectinload(Sale.payments)
        ).filter(
            Sale.id == sale_id,
            Sale.tenant_id == tenant_id
        ).first()

    def create_sale(self, data: SaleCreate, tenant_id: UUID, user_id: UUID) -> ActionResult:
        if not data.items:
            return validation_error("La venta debe tener al menos un producto")
        for item in data.items:
            if item.quantity is None or item.quantity <= 0:
                return validation_error("La cantidad debe ser mayor a cero")
            if item.unit_price is not None and item.unit_price < 0:
                return validation_error("El precio no puede ser negativo")

        try:
            if data.customer_id:
                customer = self.db.query(Customer).filter(
                    Customer.id == data.customer_id,
                    Customer.tenant_id == tenant_id
                ).first()
                if not customer:
                    return not_found_error("Cliente no encontrado")

            product_ids = {item.product_id for item in data.items}
            products = {
                product.id: product
                for product in self.db.query(Product).filter(
                    Product.tenant_id == tenant_id,
                    Product.id.in_(product_ids)
                ).all()
            }
            if len(products) != len(product_ids):
                return not_found_error("Producto no encontrado")

            sale = Sale(
                tenant_id=tenant_id,
                sale_number=data.sale_number or self._next_sale_number(tenant_id),
                customer_id=data.customer_id,
                sale_date=data.sale_date or datetime.now(),
                status=SaleStatus(data.status.value),
                payment_status=PaymentStatus.PENDING,
                payment_method=data.payment_method,
                notes=data.notes,
                created_by=user_id
            )

            total = Decimal("0")
            for item in data.items:
                unit_price = item.unit_price if item.unit_price is not None else products[item.product_id].price
                sale.items.append(SaleItem(
                    tenant_id=tenant_id,
                    product_id=item.product_id,
                    quantity=item.quantity,
                    unit_price=unit_price
                ))
                total += to_decimal(unit_price) * to_decimal(item.quantity)
            sale.total = total

            self.db.add(sale)
            self.db.commit()
            self.db.refresh(sale)

        except Exception as e:
            self.db.rollback()
            return handle_server_error(
                e, ErrorContext(operation="create_sale", tenant_id=tenant_id, user_id=user_id),
                "Error al crear la venta"
            )

        logger.info(f"Sale {sale.sale_number} created for tenant {tenant_id}: total {sale.total}")

        notification_service.dispatch_notification(
            tenant_id=tenant_id,
            type=notification_service.NEW_SALE,
            title="Nueva Venta",
            message=f"Se registró la venta {sale.sale_number} por $ {to_decimal(sale.total):.2f}",
            link=f"/sales/{sale.id}",
            metadata={"sale_id": str(sale.id), "total": str(sale.total)}
        )

        return ActionSuccess(data=to_sale_out(sale))
