"""
Tests para la liquidación de cuentas

Cubre:
- Calculadora de saldos (sobrepago, saldo cero)
- Clasificador de antigüedad (días vencidos, filtros, orden estable, rangos)
- Cuentas por cobrar / por pagar a una fecha de corte
- Exportación a Excel y PDF
- Endpoint con aislamiento por tenant
"""

import io
from datetime import date, datetime, timedelta
from decimal import Decimal
from types import SimpleNamespace
from uuid import uuid4

import pytest
from openpyxl import load_workbook

from ledgerpos.common.enums import PaymentStatus
from ledgerpos.modules.purchases.models import PurchaseOrder, SupplierPayment
from ledgerpos.modules.sales.models import Sale, SalePayment
from ledgerpos.modules.suppliers.models import Supplier
from ledgerpos.modules.settlement.aging import (
    calculate_aging_buckets, calculate_days_overdue, filter_by_date,
    filter_by_payment_status, sort_by_days_overdue
)
from ledgerpos.modules.settlement.balance import calculate_balance, derive_payment_status, sum_payments
from ledgerpos.modules.settlement.export import (
    build_filename, build_settlement_pdf, build_settlement_workbook
)
from ledgerpos.modules.settlement.service import (
    SettlementService, calculate_financial_summary,
    process_accounts_payable, process_accounts_receivable
)


CUTOFF = datetime(2024, 6, 30, 12, 0)


def sale(total, paid=(), days_before=0, status=PaymentStatus.PENDING, number=None):
    return Sale(
        id=uuid4(),
        sale_number=number or f"V-{uuid4().hex[:4]}",
        total=Decimal(total),
        sale_date=CUTOFF - timedelta(days=days_before),
        payment_status=status,
        payments=[SalePayment(amount=Decimal(amount), payment_method="efectivo") for amount in paid],
    )


# ===== CALCULADORA DE SALDOS =====

class TestBalanceCalculator:
    """Tests para calculate_balance y derive_payment_status"""

    def test_balance_is_total_minus_payments(self):
        payments = [{"amount": Decimal("30")}, {"amount": Decimal("20.50")}]
        assert calculate_balance(Decimal("100"), payments) == Decimal("49.50")

    def test_payments_summing_to_total_leave_zero(self):
        payments = [SimpleNamespace(amount=Decimal("60")), SimpleNamespace(amount=Decimal("40"))]
        assert calculate_balance(Decimal("100"), payments) == Decimal("0")

    def test_no_payments_balance_equals_total(self):
        assert calculate_balance(Decimal("75"), []) == Decimal("75")
        assert sum_payments([]) == Decimal("0")

    def test_overpayment_is_negative_not_clamped(self):
        """Total 100 con un pago de 150: saldo -50 y estado paid"""
        payments = [{"amount": Decimal("150")}]
        assert calculate_balance(Decimal("100"), payments) == Decimal("-50")
        assert derive_payment_status(sum_payments(payments), Decimal("100")) == PaymentStatus.PAID

    @pytest.mark.parametrize("paid,expected", [
        ("0", PaymentStatus.PENDING),
        ("0.01", PaymentStatus.PARTIAL),
        ("99.99", PaymentStatus.PARTIAL),
        ("100", PaymentStatus.PAID),
        ("120", PaymentStatus.PAID),
    ])
    def test_derive_payment_status(self, paid, expected):
        assert derive_payment_status(Decimal(paid), Decimal("100")) == expected


# ===== CLASIFICADOR DE ANTIGÜEDAD =====

class TestAgingClassifier:
    """Tests para días vencidos, filtros y orden"""

    def test_days_overdue_whole_days(self):
        assert calculate_days_overdue(date(2024, 1, 11), date(2024, 1, 1)) == 10

    def test_days_overdue_floors_partial_days(self):
        assert calculate_days_overdue(datetime(2024, 1, 10), datetime(2024, 1, 9, 12, 0)) == 0

    def test_days_overdue_negative_for_future_documents(self):
        assert calculate_days_overdue(date(2024, 1, 1), date(2024, 1, 3)) == -2
        assert calculate_days_overdue(datetime(2024, 1, 1, 10), datetime(2024, 1, 1, 11)) == -1

    def test_filter_by_payment_status_accepts_enum_and_str(self):
        docs = [sale("10", status=PaymentStatus.PENDING), sale("10", status=PaymentStatus.PAID)]
        assert len(filter_by_payment_status(docs, ["pending", "partial"])) == 1
        assert len(filter_by_payment_status(docs, [PaymentStatus.PAID])) == 1

    def test_filter_by_date_includes_cutoff_day(self):
        same_day = sale("10")
        same_day.sale_date = datetime(2024, 6, 30, 18, 0)
        next_day = sale("10")
        next_day.sale_date = datetime(2024, 7, 1, 0, 0)

        result = filter_by_date([same_day, next_day], date(2024, 6, 30))
        assert result == [same_day]

    def test_filter_composition_respects_both_predicates(self):
        docs = [
            sale("10", status=PaymentStatus.PENDING, days_before=3),
            sale("10", status=PaymentStatus.PARTIAL, days_before=-2),
            sale("10", status=PaymentStatus.PAID, days_before=5),
            sale("10", status=PaymentStatus.PARTIAL, days_before=0),
            sale("10", status=PaymentStatus.PENDING, days_before=-1),
        ]
        result = filter_by_date(filter_by_payment_status(docs, ["pending", "partial"]), CUTOFF)

        assert len(result) == 2
        for doc in result:
            assert doc.payment_status in (PaymentStatus.PENDING, PaymentStatus.PARTIAL)
            assert doc.sale_date <= CUTOFF

    def test_sort_is_descending_and_stable(self):
        accounts = [
            {"id": "a", "days_overdue": 5},
            {"id": "b", "days_overdue": 10},
            {"id": "c", "days_overdue": 5},
            {"id": "d", "days_overdue": 10},
            {"id": "e", "days_overdue": -1},
        ]
        result = sort_by_days_overdue(accounts)

        assert [a["id"] for a in result] == ["b", "d", "a", "c", "e"]
        days = [a["days_overdue"] for a in result]
        assert days == sorted(days, reverse=True)
        assert sort_by_days_overdue(result) == result

    def test_aging_buckets(self):
        accounts = [
            {"days_overdue": 0, "balance": Decimal("10")},
            {"days_overdue": 30, "balance": Decimal("5")},
            {"days_overdue": 31, "balance": Decimal("20")},
            {"days_overdue": 75, "balance": Decimal("40")},
            {"days_overdue": 91, "balance": Decimal("80")},
        ]
        buckets = calculate_aging_buckets(accounts)
        assert buckets == {
            "current": Decimal("15"),
            "days_31_to_60": Decimal("20"),
            "days_61_to_90": Decimal("40"),
            "over_90": Decimal("80"),
        }


# ===== CUENTAS POR COBRAR / PAGAR =====

class TestAccountsProcessing:
    """Tests para process_accounts_receivable / payable"""

    def test_receivable_aging_scenario(self):
        """Venta A pendiente (hace 10 días) y venta B pagada (hace 5 días): solo A"""
        sale_a = sale("1000", days_before=10, status=PaymentStatus.PENDING, number="A")
        sale_b = sale("500", paid=["500"], days_before=5, status=PaymentStatus.PAID, number="B")

        result = process_accounts_receivable([sale_a, sale_b], CUTOFF)

        assert len(result) == 1
        assert result[0].id == sale_a.id
        assert result[0].balance == Decimal("1000")
        assert result[0].days_overdue == 10
        assert result[0].customer_name == "Cliente General"

    def test_receivable_computes_paid_and_sorts(self):
        older = sale("300", paid=["100"], days_before=40, status=PaymentStatus.PARTIAL)
        newer = sale("200", days_before=2)
        future = sale("900", days_before=-3)

        result = process_accounts_receivable([newer, future, older], CUTOFF)

        assert [a.id for a in result] == [older.id, newer.id]
        assert result[0].paid == Decimal("100")
        assert result[0].balance == Decimal("200")

    def test_payable_uses_supplier_name_or_default(self):
        supplier = Supplier(id=uuid4(), name="Mayorista Norte")
        with_supplier = PurchaseOrder(
            id=uuid4(), order_number="OC-1", total=Decimal("800"),
            order_date=CUTOFF - timedelta(days=15), payment_status=PaymentStatus.PARTIAL,
            supplier=supplier,
            payments=[SupplierPayment(amount=Decimal("300"), payment_method="transferencia")]
        )
        without_supplier = PurchaseOrder(
            id=uuid4(), order_number="OC-2", total=Decimal("50"),
            order_date=CUTOFF - timedelta(days=1), payment_status=PaymentStatus.PENDING
        )

        result = process_accounts_payable([without_supplier, with_supplier], CUTOFF)

        assert [a.order_number for a in result] == ["OC-1", "OC-2"]
        assert result[0].supplier_name == "Mayorista Norte"
        assert result[0].balance == Decimal("500")
        assert result[1].supplier_name == "Sin proveedor"

    def test_financial_summary(self):
        receivables = process_accounts_receivable([sale("1000", days_before=1), sale("250", days_before=2)], CUTOFF)
        payables = process_accounts_payable([
            PurchaseOrder(
                id=uuid4(), order_number="OC-9", total=Decimal("400"),
                order_date=CUTOFF, payment_status=PaymentStatus.PENDING
            )
        ], CUTOFF)

        summary = calculate_financial_summary(receivables, payables)

        assert summary.total_receivable == Decimal("1250")
        assert summary.total_payable == Decimal("400")
        assert summary.net_balance == Decimal("850")

    def test_empty_inputs(self):
        summary = calculate_financial_summary([], [])
        assert summary.total_receivable == Decimal("0")
        assert summary.net_balance == Decimal("0")


# ===== SERVICIO Y EXPORTACIÓN =====

class TestSettlementService:
    """Tests del servicio con base de datos"""

    def test_report_is_scoped_by_tenant(self, db_session, tenant_id, other_tenant_id, make_sale, make_customer):
        customer = make_customer(name="Laura Gómez")
        make_sale(total="400", sale_date=datetime.now() - timedelta(days=12), customer=customer)
        make_sale(total="100", payments=[("100", "efectivo")])
        make_sale(total="999", sale_date=datetime.now() - timedelta(days=3), tenant=other_tenant_id)

        report = SettlementService(db_session).get_accounts_settlement(tenant_id, date.today())

        assert len(report.accounts_receivable) == 1
        account = report.accounts_receivable[0]
        assert account.customer_name == "Laura Gómez"
        assert account.days_overdue == 12
        assert report.summary.total_receivable == Decimal("400")
        assert report.receivable_aging.current == Decimal("400")

    def test_payables_from_database(self, db_session, tenant_id, make_supplier, make_purchase_order):
        supplier = make_supplier()
        make_purchase_order(total="700", supplier=supplier, order_date=datetime.now() - timedelta(days=45))

        report = SettlementService(db_session).get_accounts_settlement(tenant_id, date.today())

        assert report.summary.total_payable == Decimal("700")
        assert report.payable_aging.days_31_to_60 == Decimal("700")
        assert report.summary.net_balance == Decimal("-700")


class TestSettlementExport:
    """Tests de exportación"""

    def _report(self, db_session, tenant_id, make_sale, make_customer):
        make_sale(total="1500", sale_date=datetime.now() - timedelta(days=8), customer=make_customer())
        return SettlementService(db_session).get_accounts_settlement(tenant_id, date(2030, 1, 15))

    def test_filename_embeds_cutoff_date(self):
        assert build_filename(date(2024, 6, 30), "xlsx") == "liquidacion-cuentas-2024-06-30.xlsx"
        assert build_filename(date(2024, 6, 30), "pdf") == "liquidacion-cuentas-2024-06-30.pdf"

    def test_workbook_has_three_sheets(self, db_session, tenant_id, make_sale, make_customer):
        report = self._report(db_session, tenant_id, make_sale, make_customer)

        workbook = load_workbook(io.BytesIO(build_settlement_workbook(report)))

        assert workbook.sheetnames == ["Resumen", "Cuentas por Cobrar", "Cuentas por Pagar"]
        receivables = workbook["Cuentas por Cobrar"]
        assert receivables["A1"].value == "Cliente"
        assert receivables["F1"].value == "Días Vencido"
        assert receivables["A2"].value == "Juan Pérez"
        assert workbook["Cuentas por Pagar"].max_row == 1

    def test_pdf_is_generated(self, db_session, tenant_id, make_sale, make_customer):
        report = self._report(db_session, tenant_id, make_sale, make_customer)
        content = build_settlement_pdf(report)
        assert content.startswith(b"%PDF")


class TestSettlementEndpoint:
    """Tests del endpoint /api/v1/accounts-settlement"""

    def test_get_settlement(self, client, auth_headers, make_sale):
        make_sale(total="250", sale_date=datetime.now() - timedelta(days=4))

        response = client.get(
            "/api/v1/accounts-settlement",
            params={"cutoff_date": date.today().isoformat()},
            headers=auth_headers
        )

        assert response.status_code == 200
        body = response.json()
        assert len(body["accounts_receivable"]) == 1
        assert body["accounts_receivable"][0]["days_overdue"] == 4
        assert Decimal(body["summary"]["total_receivable"]) == Decimal("250")

    def test_export_xlsx(self, client, auth_headers, make_sale):
        make_sale(total="250", sale_date=datetime.now() - timedelta(days=4))

        response = client.get(
            "/api/v1/accounts-settlement",
            params={"cutoff_date": "2030-01-15", "export": "xlsx"},
            headers=auth_headers
        )

        assert response.status_code == 200
        assert "liquidacion-cuentas-2030-01-15.xlsx" in response.headers["content-disposition"]

    def test_requires_authentication(self, client, tenant_id):
        response = client.get("/api/v1/accounts-settlement", headers={"X-Company-ID": str(tenant_id)})
        assert response.status_code in (401, 403)
