"""
Liquidación de cuentas a una fecha de corte.

Funciones puras (process_accounts_receivable / payable, calculate_financial_summary)
más SettlementService, que carga los documentos del tenant y arma el reporte.
"""

import logging
from datetime import date, datetime
from decimal import Decimal
from typing import Iterable, List
from uuid import UUID

from sqlalchemy.orm import Session, selectinload

from ledgerpos.core.config import settings
from ledgerpos.common.enums import OUTSTANDING_STATUSES
from ledgerpos.modules.sales.models import Sale
from ledgerpos.modules.purchases.models import PurchaseOrder
from ledgerpos.modules.settlement.aging import (
    calculate_aging_buckets, calculate_days_overdue, end_of_day,
    filter_by_date, filter_by_payment_status, sort_by_days_overdue, DateLike
)
from ledgerpos.modules.settlement.balance import calculate_balance, sum_payments, to_decimal
from ledgerpos.modules.settlement.schemas import (
    AccountPayable, AccountReceivable, AgingBuckets, SettlementReport, SettlementSummary
)

logger = logging.getLogger(__name__)

DEFAULT_CUSTOMER_NAME = "Cliente General"
DEFAULT_SUPPLIER_NAME = "Sin proveedor"


def _cutoff_instant(cutoff_date: DateLike) -> datetime:
    # Un corte expresado como fecha abarca todo ese día
    return end_of_day(cutoff_date)


def process_accounts_receivable(sales: Iterable[Sale], cutoff_date: DateLike) -> List[AccountReceivable]:
    """
    Ventas pendientes o parciales a la fecha de corte, ordenadas por días vencidos.
    """
    cutoff = _cutoff_instant(cutoff_date)
    outstanding = filter_by_date(filter_by_payment_status(sales, OUTSTANDING_STATUSES), cutoff)

    accounts = [
        AccountReceivable(
            id=sale.id,
            sale_number=sale.sale_number,
            customer_name=sale.party_name or DEFAULT_CUSTOMER_NAME,
            sale_date=sale.sale_date,
            total=to_decimal(sale.total),
            paid=sum_payments(sale.payments),
            balance=calculate_balance(sale.total, sale.payments),
            days_overdue=calculate_days_overdue(cutoff, sale.sale_date)
        )
        for sale in outstanding
    ]
    return sort_by_days_overdue(accounts)


def process_accounts_payable(orders: Iterable[PurchaseOrder], cutoff_date: DateLike) -> List[AccountPayable]:
    """
    Órdenes de compra pendientes o parciales a la fecha de corte.
    """
    cutoff = _cutoff_instant(cutoff_date)
    outstanding = filter_by_date(filter_by_payment_status(orders, OUTSTANDING_STATUSES), cutoff)

    accounts = [
        AccountPayable(
            id=order.id,
            order_number=order.order_number,
            supplier_name=order.party_name or DEFAULT_SUPPLIER_NAME,
            order_date=order.order_date,
            total=to_decimal(order.total),
            paid=sum_payments(order.payments),
            balance=calculate_balance(order.total, order.payments),
            days_overdue=calculate_days_overdue(cutoff, order.order_date)
        )
        for order in outstanding
    ]
    return sort_by_days_overdue(accounts)


def calculate_financial_summary(
    receivables: Iterable[AccountReceivable],
    payables: Iterable[AccountPayable]
) -> SettlementSummary:
    total_receivable = sum((account.balance for account in receivables), Decimal("0"))
    total_payable = sum((account.balance for account in payables), Decimal("0"))
    return SettlementSummary(
        total_receivable=total_receivable,
        total_payable=total_payable,
        net_balance=total_receivable - total_payable
    )


class SettlementService:
    """Servicio de liquidación de cuentas por tenant"""

    def __init__(self, db: Session):
        self.db = db

    def _load_sales(self, tenant_id: UUID) -> List[Sale]:
        return self.db.query(Sale).options(
            selectinload(Sale.payments),
            selectinload(Sale.customer)
        ).filter(
            Sale.tenant_id == tenant_id,
            Sale.payment_status.in_(OUTSTANDING_STATUSES)
        ).order_by(Sale.sale_date).all()

    def _load_purchase_orders(self, tenant_id: UUID) -> List[PurchaseOrder]:
        return self.db.query(PurchaseOrder).options(
            selectinload(PurchaseOrder.payments),
            selectinload(PurchaseOrder.supplier)
        ).filter(
            PurchaseOrder.tenant_id == tenant_id,
            PurchaseOrder.payment_status.in_(OUTSTANDING_STATUSES)
        ).order_by(PurchaseOrder.order_date).all()

    def get_accounts_settlement(self, tenant_id: UUID, cutoff_date: date) -> SettlementReport:
        """Reporte completo de liquidación a la fecha de corte"""
        receivables = process_accounts_receivable(self._load_sales(tenant_id), cutoff_date)
        payables = process_accounts_payable(self._load_purchase_orders(tenant_id), cutoff_date)
        summary = calculate_financial_summary(receivables, payables)

        logger.debug(
            f"Settlement for tenant {tenant_id} at {cutoff_date}: "
            f"{len(receivables)} receivables, {len(payables)} payables"
        )

        return SettlementReport(
            cutoff_date=cutoff_date,
            currency=settings.DEFAULT_CURRENCY,
            summary=summary,
            accounts_receivable=receivables,
            accounts_payable=payables,
            receivable_aging=AgingBuckets(**calculate_aging_buckets(receivables)),
            payable_aging=AgingBuckets(**calculate_aging_buckets(payables)),
            generated_at=datetime.now()
        )
