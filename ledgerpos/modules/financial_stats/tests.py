"""
Tests para el resumen financiero

Cubre:
- Cada métrica por separado sobre un escenario fijo
- Ejecución en paralelo con una sesión por métrica
- Una métrica que falla se reporta como 0 sin afectar al resto
"""

from datetime import date, datetime, timedelta
from decimal import Decimal
from uuid import uuid4

import pytest

from ledgerpos.modules.cash_register.models import CashRegisterOpening
from ledgerpos.modules.customers.models import CustomerStatus
from ledgerpos.modules.financial_stats.service import FinancialStatsService
from ledgerpos.modules.sales.models import SaleStatus
from ledgerpos.modules.suppliers.models import SupplierStatus


DAY = date(2024, 3, 15)
AT_NOON = datetime(2024, 3, 15, 12, 0)


@pytest.fixture
def scenario(db_session, tenant_id, make_product, make_customer, make_sale, make_supplier,
             make_purchase_order, make_supplier_payment):
    cable = make_product(name="Cable", price="100", cost="60")
    funda = make_product(name="Funda", price="50", cost="5")

    regular = make_customer(name="Regular")
    overpaid = make_customer(name="Saldo a favor")
    inactive = make_customer(name="Inactivo", status=CustomerStatus.INACTIVE)

    # Hoy: 200 completada + 50 confirmada; la cancelada no cuenta
    make_sale(total="200", customer=regular, sale_date=AT_NOON, items=[(cable, "2", "100")])
    make_sale(total="50", status=SaleStatus.CONFIRMED, sale_date=AT_NOON, items=[(funda, "1", "50")])
    make_sale(total="999", status=SaleStatus.CANCELLED, sale_date=AT_NOON, items=[(cable, "1", "999")])
    # Mes anterior
    make_sale(total="300", customer=overpaid, sale_date=AT_NOON - timedelta(days=20),
              payments=[("350", "efectivo")], items=[(cable, "3", "100")])
    make_sale(total="500", customer=inactive, sale_date=AT_NOON - timedelta(days=40))

    active_supplier = make_supplier(name="Activo")
    inactive_supplier = make_supplier(name="Inactivo", status=SupplierStatus.INACTIVE)
    make_purchase_order(total="700", supplier=active_supplier)
    make_supplier_payment(active_supplier, "200")
    make_purchase_order(total="100", supplier=inactive_supplier)

    for opening_date, amount in [(DAY - timedelta(days=1), "300"), (DAY, "1000")]:
        db_session.add(CashRegisterOpening(
            id=uuid4(), tenant_id=tenant_id, opening_date=opening_date, shift="mañana",
            opened_by=uuid4(), initial_cash_amount=Decimal(amount)
        ))
    db_session.commit()


@pytest.fixture
def service(session_factory):
    return FinancialStatsService(session_factory)


class TestMetrics:
    """Tests de cada métrica"""

    def test_daily_sales(self, service, db_session, tenant_id, scenario):
        assert service.get_daily_sales(db_session, tenant_id, DAY) == Decimal("250")

    def test_current_cash_balance_is_last_opening(self, service, db_session, tenant_id, scenario):
        assert service.get_current_cash_balance(db_session, tenant_id, DAY) == Decimal("1000")

    def test_accounts_receivable_ignores_credit_and_inactive(self, service, db_session, tenant_id, scenario):
        assert service.get_accounts_receivable(db_session, tenant_id, DAY) == Decimal("200")

    def test_accounts_payable(self, service, db_session, tenant_id, scenario):
        assert service.get_accounts_payable(db_session, tenant_id, DAY) == Decimal("500")

    def test_monthly_profit_uses_current_cost(self, service, db_session, tenant_id, scenario):
        # (100 − 60) × 2 + (50 − 5) × 1
        assert service.get_monthly_profit(db_session, tenant_id, DAY) == Decimal("125")

    def test_empty_tenant(self, service, db_session):
        tenant = uuid4()
        assert service.get_daily_sales(db_session, tenant, DAY) == Decimal("0")
        assert service.get_current_cash_balance(db_session, tenant, DAY) == Decimal("0")
        assert service.get_accounts_receivable(db_session, tenant, DAY) == Decimal("0")


class TestFinancialStats:
    """Tests de la orquestación en paralelo"""

    def test_all_metrics(self, service, tenant_id, scenario):
        stats = service.get_financial_stats(tenant_id, today=DAY)

        assert stats.daily_sales == Decimal("250")
        assert stats.current_cash_balance == Decimal("1000")
        assert stats.accounts_receivable == Decimal("200")
        assert stats.accounts_payable == Decimal("500")
        assert stats.monthly_profit == Decimal("125")
        assert stats.currency == "ARS"

    def test_failed_metric_reports_zero(self, service, tenant_id, scenario, monkeypatch):
        def broken(db, tenant_id, today):
            raise RuntimeError("timeout")

        monkeypatch.setattr(service, "get_monthly_profit", broken)

        stats = service.get_financial_stats(tenant_id, today=DAY)

        assert stats.monthly_profit == Decimal("0")
        assert stats.daily_sales == Decimal("250")

    def test_endpoint(self, client, auth_headers, make_sale):
        make_sale(total="75")

        response = client.get("/api/v1/financial-stats", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert Decimal(body["daily_sales"]) == Decimal("75")
        assert Decimal(body["accounts_payable"]) == Decimal("0")

    def test_endpoint_requires_role(self, client, headers_for_role):
        response = client.get("/api/v1/financial-stats", headers=headers_for_role("cashier"))
        assert response.status_code == 403
