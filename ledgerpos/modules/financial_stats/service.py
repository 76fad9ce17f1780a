"""
Resumen financiero (dashboard)

Calcula cinco métricas independientes en paralelo, cada una con su propia
sesión; no comparten transacción y puede haber un leve desfase entre ellas.

Simplificaciones conocidas:
- current_cash_balance es el monto inicial de la apertura más reciente, sin
  sumar ventas ni movimientos de caja
- monthly_profit usa el costo vigente del producto, no el costo al vender
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import date, datetime
from decimal import Decimal
from typing import Callable, Dict
from uuid import UUID

from sqlalchemy import func
from sqlalchemy.orm import Session, sessionmaker

from ledgerpos.core.config import settings
from ledgerpos.common.dates import day_range, month_range
from ledgerpos.modules.accounts.service import AccountReconcilerService
from ledgerpos.modules.cash_register.models import CashRegisterOpening
from ledgerpos.modules.customers.models import Customer, CustomerStatus
from ledgerpos.modules.financial_stats.schemas import FinancialStats
from ledgerpos.modules.products.models import Product
from ledgerpos.modules.sales.models import REVENUE_STATUSES, Sale, SaleItem
from ledgerpos.modules.settlement.balance import to_decimal
from ledgerpos.modules.suppliers.models import Supplier, SupplierStatus

logger = logging.getLogger(__name__)


class FinancialStatsService:
    """Servicio de métricas financieras por tenant"""

    def __init__(self, session_factory: sessionmaker, max_workers: int = None):
        self.session_factory = session_factory
        self.max_workers = max_workers or settings.FINANCIAL_STATS_MAX_WORKERS

    # ===== MÉTRICAS =====

    def get_daily_sales(self, db: Session, tenant_id: UUID, today: date) -> Decimal:
        start, end = day_range(today)
        total = db.query(func.coalesce(func.sum(Sale.total), 0)).filter(
            Sale.tenant_id == tenant_id,
            Sale.sale_date >= start,
            Sale.sale_date < end,
            Sale.status.in_(REVENUE_STATUSES)
        ).scalar()
        return to_decimal(total)

    def get_current_cash_balance(self, db: Session, tenant_id: UUID, today: date) -> Decimal:
        opening = db.query(CashRegisterOpening).filter(
            CashRegisterOpening.tenant_id == tenant_id
        ).order_by(
            CashRegisterOpening.opening_date.desc(),
            CashRegisterOpening.created_at.desc()
        ).first()
        return to_decimal(opening.initial_cash_amount) if opening else Decimal("0")

    def get_accounts_receivable(self, db: Session, tenant_id: UUID, today: date) -> Decimal:
        reconciler = AccountReconcilerService(db)
        customer_ids = [row.id for row in db.query(Customer.id).filter(
            Customer.tenant_id == tenant_id,
            Customer.status == CustomerStatus.ACTIVE
        ).all()]
        # Un cliente con saldo a favor no compensa la deuda de otros
        return sum(
            (max(reconciler.get_customer_balance(tenant_id, customer_id), Decimal("0"))
             for customer_id in customer_ids),
            Decimal("0")
        )

    def get_accounts_payable(self, db: Session, tenant_id: UUID, today: date) -> Decimal:
        reconciler = AccountReconcilerService(db)
        supplier_ids = [row.id for row in db.query(Supplier.id).filter(
            Supplier.tenant_id == tenant_id,
            Supplier.status == SupplierStatus.ACTIVE
        ).all()]
        return sum(
            (max(reconciler.get_supplier_balance(tenant_id, supplier_id), Decimal("0"))
             for supplier_id in supplier_ids),
            Decimal("0")
        )

    def get_monthly_profit(self, db: Session, tenant_id: UUID, today: date) -> Decimal:
        start, end = month_range(today)
        rows = db.query(SaleItem.unit_price, SaleItem.quantity, Product.cost).join(
            Sale, SaleItem.sale_id == Sale.id
        ).join(
            Product, SaleItem.product_id == Product.id
        ).filter(
            Sale.tenant_id == tenant_id,
            Sale.sale_date >= start,
            Sale.sale_date < end,
            Sale.status.in_(REVENUE_STATUSES)
        ).all()
        return sum(
            ((to_decimal(unit_price) - to_decimal(cost)) * to_decimal(quantity)
             for unit_price, quantity, cost in rows),
            Decimal("0")
        )

    # ===== ORQUESTACIÓN =====

    def _run_metric(self, name: str, metric: Callable, tenant_id: UUID, today: date) -> Decimal:
        try:
            with self.session_factory() as db:
                return metric(db, tenant_id, today)
        except Exception as e:
            logger.error(f"Error calculating metric '{name}' for tenant {tenant_id}: {e}", exc_info=True)
            return Decimal("0")

    def get_financial_stats(self, tenant_id: UUID, today: date = None) -> FinancialStats:
        """Calcula las cinco métricas en paralelo"""
        today = today or date.today()
        metrics: Dict[str, Callable] = {
            "daily_sales": self.get_daily_sales,
            "current_cash_balance": self.get_current_cash_balance,
            "accounts_receivable": self.get_accounts_receivable,
            "accounts_payable": self.get_accounts_payable,
            "monthly_profit": self.get_monthly_profit,
        }

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            futures = {
                name: executor.submit(self._run_metric, name, metric, tenant_id, today)
                for name, metric in metrics.items()
            }
            results = {name: future.result() for name, future in futures.items()}

        return FinancialStats(
            **results,
            currency=settings.DEFAULT_CURRENCY,
            last_updated=datetime.now()
        )
