"""
Tests para sesiones de caja

Cubre:
- Clasificación por método de pago y desglose de ventas
- Apertura: monto inicial > 0
- Movimientos: requieren apertura activa
- Cierre: totales del día, arqueo y asociación a la apertura
- Estado de caja y endpoints
"""

from datetime import date, datetime, timedelta
from decimal import Decimal

import pytest

from ledgerpos.common.errors import ErrorType
from ledgerpos.modules.cash_register.models import CashRegisterOpening
from ledgerpos.modules.cash_register.schemas import (
    CashMovementCreate, CashRegisterClosureCreate, CashRegisterOpeningCreate
)
from ledgerpos.modules.cash_register.service import (
    NO_ACTIVE_OPENING_MESSAGE, NO_OPENING_FOR_CLOSURE_WARNING, CashSessionService,
    calculate_cash_difference, classify_payment_method
)
from ledgerpos.modules.sales.models import SaleStatus


DAY = date(2024, 3, 15)
AT_NOON = datetime(2024, 3, 15, 12, 0)


@pytest.fixture
def service(db_session):
    return CashSessionService(db_session)


@pytest.fixture
def open_register(service, tenant_id, user_id):
    def _open(amount="1000", opening_date=DAY, shift="mañana"):
        result = service.create_opening(
            CashRegisterOpeningCreate(opening_date=opening_date, shift=shift, initial_cash_amount=Decimal(amount)),
            tenant_id, user_id, "Ana Cajera"
        )
        assert result.success
        return result.data
    return _open


# ===== MÉTODOS DE PAGO =====

class TestPaymentMethodClassification:
    """Tests para classify_payment_method"""

    @pytest.mark.parametrize("method,expected", [
        ("efectivo", "cash"),
        ("Efectivo", "cash"),
        ("CASH", "cash"),
        ("Tarjeta de Crédito", "card"),
        ("tarjeta debito", "card"),
        ("card", "card"),
        ("Transferencia bancaria", "transfer"),
        ("cheque", "other"),
        ("", "other"),
        (None, "other"),
    ])
    def test_classification(self, method, expected):
        assert classify_payment_method(method) == expected

    def test_cash_difference(self):
        assert calculate_cash_difference(Decimal("90"), Decimal("100")) == Decimal("-10")
        assert calculate_cash_difference(None, Decimal("100")) is None


# ===== APERTURA =====

class TestOpening:
    """Tests de apertura de caja"""

    @pytest.mark.parametrize("amount", ["0", "-5"])
    def test_initial_amount_must_be_positive(self, service, tenant_id, user_id, amount):
        result = service.create_opening(
            CashRegisterOpeningCreate(initial_cash_amount=Decimal(amount)), tenant_id, user_id
        )

        assert result.success is False
        assert result.error_type == ErrorType.VALIDATION_ERROR
        assert result.error == "El monto inicial debe ser mayor a cero"
        assert service.get_active_opening(tenant_id) is None

    def test_opening_is_active_until_closed(self, service, tenant_id, open_register):
        opening = open_register()

        assert opening.is_active is True
        assert opening.opened_by_name == "Ana Cajera"
        assert service.get_active_opening(tenant_id).id == opening.id

    def test_second_opening_is_allowed(self, service, tenant_id, open_register):
        open_register(shift="mañana")
        open_register(shift="tarde")

        openings, total = service.list_openings(tenant_id)
        assert total == 2

    def test_shift_cannot_be_blank(self):
        with pytest.raises(ValueError):
            CashRegisterOpeningCreate(shift="   ", initial_cash_amount=Decimal("10"))


# ===== MOVIMIENTOS =====

class TestMovements:
    """Tests de ingresos y retiros"""

    def test_requires_active_opening(self, service, tenant_id, user_id):
        result = service.record_movement(
            CashMovementCreate(movement_type="income", amount=Decimal("10"), description="Cambio"),
            tenant_id, user_id
        )

        assert result.success is False
        assert result.error == NO_ACTIVE_OPENING_MESSAGE

    @pytest.mark.parametrize("payload,message", [
        ({"movement_type": "income", "amount": "0", "description": "Cambio"}, "El monto debe ser mayor a cero"),
        ({"movement_type": "income", "amount": "10", "description": "  "}, "La descripción es requerida"),
        ({"movement_type": "refund", "amount": "10", "description": "Cambio"}, "Tipo de movimiento inválido"),
    ])
    def test_validation(self, service, tenant_id, user_id, open_register, payload, message):
        open_register()

        result = service.record_movement(CashMovementCreate(**payload), tenant_id, user_id)

        assert result.success is False
        assert result.error_type == ErrorType.VALIDATION_ERROR
        assert result.error == message

    def test_movements_summary(self, service, tenant_id, user_id, open_register):
        opening = open_register()
        for movement_type, amount in [("income", "100"), ("withdrawal", "30"), ("income", "5.50")]:
            result = service.record_movement(
                CashMovementCreate(movement_type=movement_type, amount=Decimal(amount), description="Mov"),
                tenant_id, user_id
            )
            assert result.success
            assert result.data.opening_id == opening.id

        summary = service.get_movements_summary(tenant_id, opening.id)

        assert summary.total_income == Decimal("105.50")
        assert summary.total_withdrawals == Decimal("30")
        assert summary.net_movement == Decimal("75.50")
        assert summary.movements_count == 3
        assert len(service.get_movements(tenant_id)) == 3


# ===== CIERRE =====

class TestClosure:
    """Tests de cierre de caja"""

    def _sales_of_the_day(self, make_sale):
        make_sale(total="100", payments=[("100", "efectivo")], sale_date=AT_NOON)
        make_sale(total="80", payments=[("50", "Tarjeta de Crédito"), ("30", "Efectivo")], sale_date=AT_NOON)
        make_sale(total="40", payment_method="Transferencia", sale_date=AT_NOON)
        make_sale(total="20", payment_method="cheque", sale_date=AT_NOON)
        # No cuentan: cancelada y de otro día
        make_sale(total="500", payments=[("500", "efectivo")], sale_date=AT_NOON, status=SaleStatus.CANCELLED)
        make_sale(total="700", payments=[("700", "efectivo")], sale_date=AT_NOON - timedelta(days=1))

    def test_closure_totals_and_difference(self, service, tenant_id, user_id, open_register, make_sale):
        opening = open_register()
        self._sales_of_the_day(make_sale)

        result = service.create_closure(
            CashRegisterClosureCreate(closure_date=DAY, cash_counted=Decimal("120")), tenant_id, user_id
        )

        assert result.success
        assert result.warning is None
        closure = result.data
        assert closure.opening_id == opening.id
        assert closure.shift == "mañana"
        assert closure.total_sales_count == 4
        assert closure.total_sales_amount == Decimal("240")
        assert closure.cash_sales == Decimal("130")
        assert closure.card_sales == Decimal("50")
        assert closure.transfer_sales == Decimal("40")
        assert closure.other_sales == Decimal("20")
        assert closure.cash_difference == Decimal("-10")

    def test_closed_opening_is_terminal(self, service, tenant_id, user_id, open_register):
        opening = open_register()
        service.create_closure(CashRegisterClosureCreate(closure_date=DAY), tenant_id, user_id)

        assert service.get_active_opening(tenant_id) is None
        assert service.get_opening(tenant_id, opening.id).is_active is False

        movement = service.record_movement(
            CashMovementCreate(movement_type="income", amount=Decimal("10"), description="Tarde"),
            tenant_id, user_id
        )
        assert movement.error == NO_ACTIVE_OPENING_MESSAGE

        again = service.create_closure(
            CashRegisterClosureCreate(closure_date=DAY, opening_id=opening.id), tenant_id, user_id
        )
        assert again.success is False
        assert again.error == "La apertura de caja ya fue cerrada"

    def test_closure_without_opening_returns_warning(self, service, tenant_id, user_id, make_sale):
        make_sale(total="60", payments=[("60", "efectivo")], sale_date=AT_NOON)

        result = service.create_closure(CashRegisterClosureCreate(closure_date=DAY), tenant_id, user_id)

        assert result.success
        assert result.warning == NO_OPENING_FOR_CLOSURE_WARNING
        assert result.data.opening_id is None
        assert result.data.cash_sales == Decimal("60")

    def test_closure_shift_must_match(self, service, tenant_id, user_id, open_register):
        opening = open_register(shift="mañana")

        result = service.create_closure(
            CashRegisterClosureCreate(closure_date=DAY, shift="noche"), tenant_id, user_id
        )

        assert result.warning == NO_OPENING_FOR_CLOSURE_WARNING
        assert service.get_active_opening(tenant_id).id == opening.id

    def test_negative_cash_counted(self, service, tenant_id, user_id):
        result = service.create_closure(
            CashRegisterClosureCreate(closure_date=DAY, cash_counted=Decimal("-1")), tenant_id, user_id
        )
        assert result.error == "El efectivo contado no puede ser negativo"


# ===== ESTADO DE CAJA =====

class TestCashStatus:
    """Tests para get_cash_status"""

    @pytest.fixture
    def stamp(self, db_session):
        """Fija created_at de un registro para ordenar turnos dentro del día"""
        def _stamp(record, when):
            record.created_at = when
            db_session.commit()
            return record
        return _stamp

    def test_expected_cash(self, service, db_session, tenant_id, user_id, open_register, make_sale,
                           make_supplier, make_supplier_payment, stamp):
        today = date.today()
        opening = open_register(amount="1000", opening_date=today)
        stamp(db_session.get(CashRegisterOpening, opening.id), datetime(2000, 1, 1))
        make_sale(total="200", payments=[("200", "efectivo")])
        make_supplier_payment(make_supplier(), "50", method="efectivo")
        make_supplier_payment(make_supplier(), "400", method="transferencia")
        for movement_type, amount in [("income", "100"), ("withdrawal", "30")]:
            service.record_movement(
                CashMovementCreate(movement_type=movement_type, amount=Decimal(amount), description="Mov"),
                tenant_id, user_id
            )

        cash_status = service.get_cash_status(tenant_id)

        assert cash_status.cash_sales == Decimal("200")
        assert cash_status.cash_supplier_payments == Decimal("50")
        assert cash_status.expected_cash == Decimal("1220")

    def test_second_shift_ignores_earlier_shift(self, service, db_session, tenant_id, user_id,
                                                open_register, make_sale, make_supplier,
                                                make_supplier_payment, stamp):
        supplier = make_supplier()
        morning = open_register(amount="1000", shift="mañana")
        stamp(db_session.get(CashRegisterOpening, morning.id), datetime(2024, 3, 15, 8, 0))
        stamp(make_sale(total="100", payments=[("100", "efectivo")], sale_date=AT_NOON), AT_NOON)
        stamp(make_supplier_payment(supplier, "40", method="efectivo"), datetime(2024, 3, 15, 10, 0))
        service.create_closure(
            CashRegisterClosureCreate(closure_date=DAY, shift="mañana", cash_counted=Decimal("1060")),
            tenant_id, user_id
        )

        afternoon = open_register(amount="500", shift="tarde")
        stamp(db_session.get(CashRegisterOpening, afternoon.id), datetime(2024, 3, 15, 14, 0))

        cash_status = service.get_cash_status(tenant_id)

        assert cash_status.opening.id == afternoon.id
        assert cash_status.cash_sales == Decimal("0")
        assert cash_status.cash_supplier_payments == Decimal("0")
        assert cash_status.expected_cash == Decimal("500")

        stamp(make_sale(total="80", payments=[("80", "efectivo")], sale_date=AT_NOON + timedelta(hours=3)),
              datetime(2024, 3, 15, 15, 0))
        stamp(make_supplier_payment(supplier, "30", method="efectivo"), datetime(2024, 3, 15, 16, 0))

        cash_status = service.get_cash_status(tenant_id)

        assert cash_status.cash_sales == Decimal("80")
        assert cash_status.cash_supplier_payments == Decimal("30")
        assert cash_status.expected_cash == Decimal("550")

    def test_no_active_opening(self, service, tenant_id):
        assert service.get_cash_status(tenant_id) is None


# ===== ENDPOINTS =====

class TestCashRegisterEndpoints:
    """Tests de /api/v1/cash-register"""

    def test_open_and_close(self, client, auth_headers):
        response = client.post(
            "/api/v1/cash-register/openings",
            json={"opening_date": DAY.isoformat(), "shift": "tarde", "initial_cash_amount": "500"},
            headers=auth_headers
        )
        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["data"]["is_active"] is True

        response = client.post(
            "/api/v1/cash-register/closures",
            json={"closure_date": DAY.isoformat(), "cash_counted": "0"},
            headers=auth_headers
        )
        assert response.status_code == 201
        assert response.json()["data"]["opening_id"] == body["data"]["id"]

        response = client.get("/api/v1/cash-register/openings/active", headers=auth_headers)
        assert response.status_code == 404

    def test_invalid_opening_returns_structured_error(self, client, auth_headers):
        response = client.post(
            "/api/v1/cash-register/openings",
            json={"initial_cash_amount": "0"},
            headers=auth_headers
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error_type"] == "VALIDATION_ERROR"

    def test_movement_without_opening(self, client, auth_headers):
        response = client.post(
            "/api/v1/cash-register/movements",
            json={"movement_type": "withdrawal", "amount": "10", "description": "Retiro"},
            headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == NO_ACTIVE_OPENING_MESSAGE

    def test_closure_warning_in_response(self, client, auth_headers):
        response = client.post(
            "/api/v1/cash-register/closures",
            json={"closure_date": DAY.isoformat()},
            headers=auth_headers
        )

        assert response.status_code == 201
        assert response.json()["warning"] == NO_OPENING_FOR_CLOSURE_WARNING

    def test_viewer_cannot_open(self, client, headers_for_role):
        headers = headers_for_role("viewer")

        response = client.post(
            "/api/v1/cash-register/openings",
            json={"initial_cash_amount": "100"},
            headers=headers
        )

        assert response.status_code == 403

    def test_missing_company_header(self, client, auth_headers):
        headers = {"Authorization": auth_headers["Authorization"]}

        response = client.get("/api/v1/cash-register/status", headers=headers)

        assert response.status_code == 400
