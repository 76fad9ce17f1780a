"""
Conciliación de cuentas corrientes

Arma el historial de un cliente o proveedor como movimientos débito/crédito
con saldo acumulado:
- Cliente: sus ventas (cualquier estado) y los pagos de esas ventas
- Proveedor: sus órdenes de compra y los pagos registrados contra el proveedor

Saldos:
- Cliente: Σ saldo de cada venta (por documento)
- Proveedor: Σ totales − Σ pagos (global, los pagos no siempre se asocian a una orden)
"""

import logging
from decimal import Decimal
from typing import Iterable, List
from uuid import UUID

from fastapi import HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ledgerpos.modules.accounts.schemas import (
    AccountMovement, AccountStatement, MovementKind, PartyType, StatementSummary
)
from ledgerpos.modules.customers.models import Customer
from ledgerpos.modules.purchases.models import PurchaseOrder, SupplierPayment
from ledgerpos.modules.sales.models import Sale, SalePayment
from ledgerpos.modules.settlement.balance import calculate_balance, to_decimal
from ledgerpos.modules.suppliers.models import Supplier

logger = logging.getLogger(__name__)


def apply_running_balance(movements: Iterable[AccountMovement]) -> List[AccountMovement]:
    """
    Ordena por fecha, acumula débito − crédito de la más antigua a la más
    reciente y devuelve la lista de la más reciente a la más antigua.
    """
    chronological = sorted(movements, key=lambda movement: movement.date)
    running = Decimal("0")
    for movement in chronological:
        running += movement.debit - movement.credit
        movement.balance = running
    return list(reversed(chronological))


def build_customer_movements(sales: Iterable[Sale]) -> List[AccountMovement]:
    movements = []
    for sale in sales:
        movements.append(AccountMovement(
            id=sale.id,
            type=MovementKind.SALE,
            date=sale.sale_date,
            reference=sale.sale_number,
            description=f"Venta {sale.sale_number}",
            debit=to_decimal(sale.total)
        ))
        for payment in sale.payments:
            movements.append(AccountMovement(
                id=payment.id,
                type=MovementKind.PAYMENT,
                date=payment.payment_date,
                reference=payment.reference_number or sale.sale_number,
                description=f"Pago venta {sale.sale_number} ({payment.payment_method})",
                credit=to_decimal(payment.amount)
            ))
    return apply_running_balance(movements)


def build_supplier_movements(
    orders: Iterable[PurchaseOrder],
    payments: Iterable[SupplierPayment]
) -> List[AccountMovement]:
    movements = [
        AccountMovement(
            id=order.id,
            type=MovementKind.PURCHASE,
            date=order.order_date,
            reference=order.order_number,
            description=f"Orden de compra {order.order_number}",
            debit=to_decimal(order.total)
        )
        for order in orders
    ]
    for payment in payments:
        order_number = payment.purchase_order.order_number if payment.purchase_order else None
        movements.append(AccountMovement(
            id=payment.id,
            type=MovementKind.PAYMENT,
            date=payment.payment_date,
            reference=payment.reference_number or order_number or "Pago a cuenta",
            description=(
                f"Pago orden {order_number} ({payment.payment_method})" if order_number
                else f"Pago a proveedor ({payment.payment_method})"
            ),
            credit=to_decimal(payment.amount)
        ))
    return apply_running_balance(movements)


def summarize_movements(movements: List[AccountMovement]) -> StatementSummary:
    dates = [movement.date for movement in movements]
    return StatementSummary(
        total_debits=sum((m.debit for m in movements), Decimal("0")),
        total_credits=sum((m.credit for m in movements), Decimal("0")),
        movements_count=len(movements),
        oldest_movement=min(dates) if dates else None,
        last_movement=max(dates) if dates else None
    )


class AccountReconcilerService:
    """Servicio de cuentas corrientes por tenant"""

    def __init__(self, db: Session):
        self.db = db

    # ===== CLIENTES =====

    def _customer_sales(self, tenant_id: UUID, customer_id: UUID) -> List[Sale]:
        return self.db.query(Sale).options(
            selectinload(Sale.payments)
        ).filter(
            Sale.tenant_id == tenant_id,
            Sale.customer_id == customer_id
        ).all()

    def get_customer_account_movements(self, tenant_id: UUID, customer_id: UUID) -> List[AccountMovement]:
        """Historial del cliente, más reciente primero. Sin historial devuelve []"""
        return build_customer_movements(self._customer_sales(tenant_id, customer_id))

    def get_customer_balance(self, tenant_id: UUID, customer_id: UUID) -> Decimal:
        """Σ saldo por venta; un sobrepago en una venta reduce el total"""
        sales = self._customer_sales(tenant_id, customer_id)
        return sum((calculate_balance(sale.total, sale.payments) for sale in sales), Decimal("0"))

    # ===== PROVEEDORES =====

    def _supplier_orders(self, tenant_id: UUID, supplier_id: UUID) -> List[PurchaseOrder]:
        return self.db.query(PurchaseOrder).filter(
            PurchaseOrder.tenant_id == tenant_id,
            PurchaseOrder.supplier_id == supplier_id
        ).all()

    def _supplier_payments(self, tenant_id: UUID, supplier_id: UUID) -> List[SupplierPayment]:
        return self.db.query(SupplierPayment).options(
            selectinload(SupplierPayment.purchase_order)
        ).filter(
            SupplierPayment.tenant_id == tenant_id,
            SupplierPayment.supplier_id == supplier_id
        ).all()

    def get_supplier_account_movements(self, tenant_id: UUID, supplier_id: UUID) -> List[AccountMovement]:
        return build_supplier_movements(
            self._supplier_orders(tenant_id, supplier_id),
            self._supplier_payments(tenant_id, supplier_id)
        )

    def get_supplier_balance(self, tenant_id: UUID, supplier_id: UUID) -> Decimal:
        """Σ totales de órdenes − Σ pagos al proveedor (cálculo global)"""
        total_orders = self.db.query(func.coalesce(func.sum(PurchaseOrder.total), 0)).filter(
            PurchaseOrder.tenant_id == tenant_id,
            PurchaseOrder.supplier_id == supplier_id
        ).scalar()
        total_payments = self.db.query(func.coalesce(func.sum(SupplierPayment.amount), 0)).filter(
            SupplierPayment.tenant_id == tenant_id,
            SupplierPayment.supplier_id == supplier_id
        ).scalar()
        return to_decimal(total_orders) - to_decimal(total_payments)

    # ===== ESTADOS DE CUENTA =====

    def get_customer_statement(self, tenant_id: UUID, customer_id: UUID) -> AccountStatement:
        customer = self.db.query(Customer).filter(
            Customer.id == customer_id,
            Customer.tenant_id == tenant_id
        ).first()
        if not customer:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Cliente no encontrado")

        movements = self.get_customer_account_movements(tenant_id, customer_id)
        balance = self.get_customer_balance(tenant_id, customer_id)
        credit_limit = to_decimal(customer.credit_limit) if customer.credit_limit is not None else None

        return AccountStatement(
            party_id=customer.id,
            party_type=PartyType.CUSTOMER,
            party_name=customer.name,
            current_balance=balance,
            credit_limit=credit_limit,
            available_credit=credit_limit - balance if credit_limit is not None else None,
            movements=movements,
            summary=summarize_movements(movements)
        )

    def get_supplier_statement(self, tenant_id: UUID, supplier_id: UUID) -> AccountStatement:
        supplier = self.db.query(Supplier).filter(
            Supplier.id == supplier_id,
            Supplier.tenant_id == tenant_id
        ).first()
        if not supplier:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Proveedor no encontrado")

        movements = self.get_supplier_account_movements(tenant_id, supplier_id)
        return AccountStatement(
            party_id=supplier.id,
            party_type=PartyType.SUPPLIER,
            party_name=supplier.name,
            current_balance=self.get_supplier_balance(tenant_id, supplier_id),
            movements=movements,
            summary=summarize_movements(movements)
        )
