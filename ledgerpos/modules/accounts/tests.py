"""
Tests para cuentas corrientes de clientes y proveedores

Cubre:
- Saldo acumulado (más reciente primero)
- Saldo de cliente por documento vs. saldo de proveedor global
- Estados de cuenta y endpoints
"""

from datetime import datetime, timedelta
from decimal import Decimal
from uuid import uuid4

from ledgerpos.modules.accounts.schemas import AccountMovement, MovementKind
from ledgerpos.modules.accounts.service import AccountReconcilerService, apply_running_balance


NOW = datetime.now().replace(microsecond=0)


# ===== SALDO ACUMULADO =====

class TestRunningBalance:
    """Tests para apply_running_balance"""

    def _movement(self, days_ago, debit="0", credit="0"):
        return AccountMovement(
            id=uuid4(), type=MovementKind.SALE if Decimal(debit) else MovementKind.PAYMENT,
            date=NOW - timedelta(days=days_ago), reference="X", description="X",
            debit=Decimal(debit), credit=Decimal(credit)
        )

    def test_newest_first_and_cumulative(self):
        movements = [
            self._movement(5, debit="50"),
            self._movement(10, debit="100"),
            self._movement(8, credit="40"),
        ]

        result = apply_running_balance(movements)

        assert [m.balance for m in result] == [Decimal("110"), Decimal("60"), Decimal("100")]
        dates = [m.date for m in result]
        assert dates == sorted(dates, reverse=True)

    def test_newest_balance_equals_total(self):
        movements = [
            self._movement(3, debit="20"),
            self._movement(2, credit="35"),
            self._movement(1, debit="15.50"),
        ]

        result = apply_running_balance(movements)

        total = sum((m.debit - m.credit for m in movements), Decimal("0"))
        assert result[0].balance == total
        assert result[-1].balance == result[-1].debit - result[-1].credit

    def test_empty_history(self):
        assert apply_running_balance([]) == []


# ===== CLIENTES =====

class TestCustomerAccount:
    """Tests de cuenta corriente de clientes"""

    def test_movements_from_sales_and_payments(self, db_session, tenant_id, make_customer, make_sale):
        customer = make_customer()
        make_sale(total="100", customer=customer, sale_date=NOW - timedelta(days=10),
                  payments=[("40", "efectivo", NOW - timedelta(days=8))])
        make_sale(total="50", customer=customer, sale_date=NOW - timedelta(days=5))

        movements = AccountReconcilerService(db_session).get_customer_account_movements(tenant_id, customer.id)

        assert [m.type for m in movements] == [MovementKind.SALE, MovementKind.PAYMENT, MovementKind.SALE]
        assert movements[0].balance == Decimal("110")
        assert movements[1].credit == Decimal("40")
        assert movements[-1].balance == Decimal("100")

    def test_balance_is_sum_of_document_balances(self, db_session, tenant_id, make_customer, make_sale):
        """Un sobrepago en una venta reduce el saldo total del cliente"""
        customer = make_customer()
        make_sale(total="100", customer=customer, payments=[("150", "efectivo")])
        make_sale(total="80", customer=customer)

        balance = AccountReconcilerService(db_session).get_customer_balance(tenant_id, customer.id)

        assert balance == Decimal("30")

    def test_customer_without_history(self, db_session, tenant_id, make_customer):
        customer = make_customer()
        service = AccountReconcilerService(db_session)

        assert service.get_customer_account_movements(tenant_id, customer.id) == []
        assert service.get_customer_balance(tenant_id, customer.id) == Decimal("0")

    def test_other_tenant_sales_are_ignored(self, db_session, tenant_id, other_tenant_id,
                                            make_customer, make_sale):
        customer = make_customer()
        make_sale(total="100", customer=customer)
        make_sale(total="999", customer=customer, tenant=other_tenant_id)

        balance = AccountReconcilerService(db_session).get_customer_balance(tenant_id, customer.id)

        assert balance == Decimal("100")

    def test_statement_with_credit_limit(self, db_session, tenant_id, make_customer, make_sale):
        customer = make_customer(credit_limit=Decimal("500"))
        make_sale(total="200", customer=customer, payments=[("50", "tarjeta")])

        statement = AccountReconcilerService(db_session).get_customer_statement(tenant_id, customer.id)

        assert statement.current_balance == Decimal("150")
        assert statement.available_credit == Decimal("350")
        assert statement.summary.total_debits == Decimal("200")
        assert statement.summary.total_credits == Decimal("50")
        assert statement.summary.movements_count == 2


# ===== PROVEEDORES =====

class TestSupplierAccount:
    """Tests de cuenta corriente de proveedores"""

    def test_balance_is_global(self, db_session, tenant_id, make_supplier,
                               make_purchase_order, make_supplier_payment):
        """Los pagos a cuenta (sin orden) también reducen el saldo"""
        supplier = make_supplier()
        make_purchase_order(total="500", supplier=supplier)
        second = make_purchase_order(total="300", supplier=supplier)
        make_supplier_payment(supplier, "300", order=second)
        make_supplier_payment(supplier, "200")

        balance = AccountReconcilerService(db_session).get_supplier_balance(tenant_id, supplier.id)

        assert balance == Decimal("300")

    def test_movements_include_unlinked_payments(self, db_session, tenant_id, make_supplier,
                                                 make_purchase_order, make_supplier_payment):
        supplier = make_supplier()
        order = make_purchase_order(total="400", supplier=supplier, order_date=NOW - timedelta(days=6))
        make_supplier_payment(supplier, "100", order=order, payment_date=NOW - timedelta(days=4))
        make_supplier_payment(supplier, "50", payment_date=NOW - timedelta(days=2))

        movements = AccountReconcilerService(db_session).get_supplier_account_movements(tenant_id, supplier.id)

        assert [m.balance for m in movements] == [Decimal("250"), Decimal("300"), Decimal("400")]
        assert movements[0].reference == "Pago a cuenta"
        assert movements[1].reference == order.order_number

    def test_supplier_without_history(self, db_session, tenant_id, make_supplier):
        supplier = make_supplier()
        service = AccountReconcilerService(db_session)

        assert service.get_supplier_account_movements(tenant_id, supplier.id) == []
        assert service.get_supplier_balance(tenant_id, supplier.id) == Decimal("0")


# ===== ENDPOINTS =====

class TestAccountEndpoints:
    """Tests de /api/v1/customers y /api/v1/suppliers"""

    def test_customer_account(self, client, auth_headers, make_customer, make_sale):
        customer = make_customer()
        make_sale(total="120", customer=customer, payments=[("20", "efectivo")])

        response = client.get(f"/api/v1/customers/{customer.id}/account", headers=auth_headers)

        assert response.status_code == 200
        body = response.json()
        assert len(body) == 2
        assert Decimal(body[0]["balance"]) == Decimal("100")

    def test_customer_balance(self, client, auth_headers, make_customer, make_sale):
        customer = make_customer()
        make_sale(total="120", customer=customer)

        response = client.get(f"/api/v1/customers/{customer.id}/balance", headers=auth_headers)

        assert response.status_code == 200
        assert Decimal(response.json()["balance"]) == Decimal("120")

    def test_statement_unknown_customer(self, client, auth_headers):
        response = client.get(f"/api/v1/customers/{uuid4()}/statement", headers=auth_headers)

        assert response.status_code == 404
        assert response.json()["detail"] == "Cliente no encontrado"

    def test_supplier_balance(self, client, auth_headers, make_supplier, make_purchase_order):
        supplier = make_supplier()
        make_purchase_order(total="90", supplier=supplier)

        response = client.get(f"/api/v1/suppliers/{supplier.id}/balance", headers=auth_headers)

        assert response.status_code == 200
        assert response.json()["party_type"] == "supplier"
        assert Decimal(response.json()["balance"]) == Decimal("90")
