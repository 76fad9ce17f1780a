"""
Tests para la aplicación de pagos

Cubre:
- Validación previa (monto, método) sin escribir en la base
- Transición de estado pending -> partial -> paid
- Sobrepago con advertencia
- Pagos a proveedor (supplier_id) y a reparaciones (total derivado)
- Notificación payment_received sin bloquear
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledgerpos.common.enums import PaymentStatus
from ledgerpos.common.errors import ErrorType
from ledgerpos.modules.notifications import tasks as notification_tasks
from ledgerpos.modules.payments.schemas import DocumentType, PaymentCreate
from ledgerpos.modules.payments.service import PaymentService
from ledgerpos.modules.purchases.models import SupplierPayment
from ledgerpos.modules.sales.models import SalePayment


@pytest.fixture
def service(db_session):
    return PaymentService(db_session)


def pay(amount, method="efectivo", **kwargs):
    return PaymentCreate(amount=Decimal(amount), payment_method=method, **kwargs)


# ===== VALIDACIONES =====

class TestPaymentValidation:
    """Las validaciones ocurren antes de cualquier escritura"""

    @pytest.mark.parametrize("amount,method,message", [
        ("0", "efectivo", "El monto debe ser mayor a cero"),
        ("-10", "efectivo", "El monto debe ser mayor a cero"),
        ("10", "", "El método de pago es requerido"),
        ("10", "   ", "El método de pago es requerido"),
    ])
    def test_invalid_payment_is_not_stored(self, service, db_session, tenant_id, user_id,
                                           make_sale, amount, method, message):
        sale = make_sale(total="100")

        result = service.add_sale_payment(sale.id, pay(amount, method), tenant_id, user_id)

        assert result.success is False
        assert result.error_type == ErrorType.VALIDATION_ERROR
        assert result.error == message
        assert db_session.query(SalePayment).count() == 0

    def test_unknown_document(self, service, tenant_id, user_id):
        result = service.add_sale_payment(uuid4(), pay("10"), tenant_id, user_id)

        assert result.error_type == ErrorType.NOT_FOUND_ERROR
        assert result.error == "Venta no encontrada"

    def test_document_of_other_tenant(self, service, tenant_id, other_tenant_id, user_id, make_sale):
        sale = make_sale(total="100", tenant=other_tenant_id)

        result = service.add_sale_payment(sale.id, pay("10"), tenant_id, user_id)

        assert result.error_type == ErrorType.NOT_FOUND_ERROR


# ===== VENTAS =====

class TestSalePayments:
    """Tests de pagos a ventas"""

    def test_status_progression_is_monotonic(self, service, tenant_id, user_id, make_sale):
        sale = make_sale(total="100")
        statuses = []

        for amount in ["30", "50", "20"]:
            result = service.add_sale_payment(sale.id, pay(amount), tenant_id, user_id)
            assert result.success
            statuses.append(result.data.payment_status.value)

        assert statuses == ["partial", "partial", "paid"]
        assert sale.payment_status == PaymentStatus.PAID

    def test_partial_payment_result(self, service, tenant_id, user_id, make_sale):
        sale = make_sale(total="100")

        result = service.add_sale_payment(
            sale.id, pay("30", "tarjeta", reference_number="TX-1"), tenant_id, user_id
        )

        application = result.data
        assert result.warning is None
        assert application.document_number == sale.sale_number
        assert application.paid_amount == Decimal("30")
        assert application.balance == Decimal("70")
        assert application.payment.document_type == DocumentType.SALE
        assert application.payment.reference_number == "TX-1"
        assert application.payment.created_by == user_id

    def test_overpayment_is_accepted_with_warning(self, service, tenant_id, user_id, make_sale):
        sale = make_sale(total="100", payments=[("90", "efectivo")])

        result = service.add_sale_payment(sale.id, pay("60"), tenant_id, user_id)

        assert result.success
        assert result.warning is not None
        assert "50.00" in result.warning
        assert result.data.balance == Decimal("-50")
        assert result.data.payment_status.value == "paid"

    def test_notification_is_queued(self, service, tenant_id, user_id, make_sale, sent_notifications):
        sale = make_sale(total="100")

        service.add_sale_payment(sale.id, pay("40"), tenant_id, user_id)

        assert len(sent_notifications) == 1
        notification = sent_notifications[0]
        assert notification["type"] == "payment_received"
        assert notification["title"] == "Pago Recibido"
        assert notification["tenant_id"] == str(tenant_id)
        assert notification["link"] == f"/sales/{sale.id}"
        assert notification["metadata"]["amount"] == "40.00"

    def test_notification_failure_does_not_fail_payment(self, service, tenant_id, user_id,
                                                        make_sale, monkeypatch):
        class BrokenTask:
            def delay(self, **kwargs):
                raise ConnectionError("redis unavailable")

        monkeypatch.setattr(notification_tasks, "create_notification_task", BrokenTask())
        sale = make_sale(total="100")

        result = service.add_sale_payment(sale.id, pay("100"), tenant_id, user_id)

        assert result.success
        assert result.data.payment_status.value == "paid"

    def test_list_payments(self, service, tenant_id, user_id, make_sale):
        sale = make_sale(total="100", payments=[("25", "efectivo"), ("25", "tarjeta")])

        payments = service.list_payments(DocumentType.SALE, sale.id, tenant_id)

        assert len(payments.payments) == 2
        assert payments.total_paid == Decimal("50")
        assert service.list_payments(DocumentType.SALE, uuid4(), tenant_id) is None


# ===== ÓRDENES DE COMPRA =====

class TestSupplierPayments:
    """Tests de pagos a órdenes de compra"""

    def test_payment_is_linked_to_supplier(self, service, db_session, tenant_id, user_id,
                                           make_supplier, make_purchase_order, sent_notifications):
        supplier = make_supplier()
        order = make_purchase_order(total="300", supplier=supplier)

        result = service.add_supplier_payment(order.id, pay("300", "transferencia"), tenant_id, user_id)

        assert result.success
        assert result.data.payment_status.value == "paid"
        payment = db_session.query(SupplierPayment).one()
        assert payment.supplier_id == supplier.id
        assert payment.purchase_order_id == order.id
        assert sent_notifications == []

    def test_order_without_supplier(self, service, db_session, tenant_id, user_id, make_purchase_order):
        order = make_purchase_order(total="300")

        result = service.add_supplier_payment(order.id, pay("100"), tenant_id, user_id)

        assert result.error_type == ErrorType.VALIDATION_ERROR
        assert db_session.query(SupplierPayment).count() == 0


# ===== REPARACIONES =====

class TestRepairPayments:
    """Tests de pagos a órdenes de reparación"""

    def test_total_is_labor_plus_parts(self, make_repair_order):
        order = make_repair_order(labor_cost="50", items=[("Pantalla", "30"), ("Batería", "20")])
        assert order.total == Decimal("100")

    def test_repair_payment(self, service, tenant_id, user_id, make_repair_order, sent_notifications):
        order = make_repair_order(labor_cost="50", items=[("Pantalla", "30"), ("Batería", "20")])

        partial = service.add_repair_payment(order.id, pay("60"), tenant_id, user_id)
        final = service.add_repair_payment(order.id, pay("40"), tenant_id, user_id)

        assert partial.data.payment_status.value == "partial"
        assert final.data.payment_status.value == "paid"
        assert final.data.balance == Decimal("0")
        assert [n["type"] for n in sent_notifications] == ["payment_received", "payment_received"]


# ===== ENDPOINTS =====

class TestPaymentEndpoints:
    """Tests de /api/v1/.../payments"""

    def test_add_sale_payment(self, client, auth_headers, make_sale):
        sale = make_sale(total="100")

        response = client.post(
            f"/api/v1/sales/{sale.id}/payments",
            json={"amount": "40", "payment_method": "efectivo"},
            headers=auth_headers
        )

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["payment_status"] == "partial"
        assert Decimal(body["data"]["balance"]) == Decimal("60")

    def test_unknown_sale(self, client, auth_headers):
        response = client.post(
            f"/api/v1/sales/{uuid4()}/payments",
            json={"amount": "40", "payment_method": "efectivo"},
            headers=auth_headers
        )

        assert response.status_code == 404
        assert response.json()["error_type"] == "NOT_FOUND_ERROR"

    def test_invalid_amount(self, client, auth_headers, make_sale):
        sale = make_sale(total="100")

        response = client.post(
            f"/api/v1/sales/{sale.id}/payments",
            json={"amount": "0", "payment_method": "efectivo"},
            headers=auth_headers
        )

        assert response.status_code == 400

    def test_list_repair_payments_not_found(self, client, auth_headers):
        response = client.get(f"/api/v1/repair-orders/{uuid4()}/payments", headers=auth_headers)
        assert response.status_code == 404
