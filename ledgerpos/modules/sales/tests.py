"""
Tests para el alta de ventas
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from ledgerpos.common.errors import ErrorType
from ledgerpos.modules.sales.models import Sale
from ledgerpos.modules.sales.schemas import SaleCreate, SaleItemCreate
from ledgerpos.modules.sales.service import SaleService


@pytest.fixture
def service(db_session):
    return SaleService(db_session)


class TestCreateSale:
    """Tests para SaleService.create_sale"""

    def test_total_is_computed_from_items(self, service, tenant_id, user_id, make_product,
                                          make_customer, sent_notifications):
        cable = make_product(name="Cable USB", price="100")
        funda = make_product(name="Funda", price="20")
        customer = make_customer()

        result = service.create_sale(SaleCreate(
            customer_id=customer.id,
            payment_method="efectivo",
            items=[
                SaleItemCreate(product_id=cable.id, quantity=Decimal("2")),
                SaleItemCreate(product_id=funda.id, quantity=Decimal("3"), unit_price=Decimal("15")),
            ]
        ), tenant_id, user_id)

        assert result.success
        sale = result.data
        assert sale.total == Decimal("245")
        assert sale.sale_number == "V-000001"
        assert sale.payment_status == "pending"
        assert sale.balance_due == Decimal("245")
        assert len(sale.items) == 2

        assert len(sent_notifications) == 1
        assert sent_notifications[0]["type"] == "new_sale"
        assert sent_notifications[0]["title"] == "Nueva Venta"

    def test_sale_without_items(self, service, db_session, tenant_id, user_id):
        result = service.create_sale(SaleCreate(items=[]), tenant_id, user_id)

        assert result.error_type == ErrorType.VALIDATION_ERROR
        assert result.error == "La venta debe tener al menos un producto"
        assert db_session.query(Sale).count() == 0

    def test_quantity_must_be_positive(self, service, tenant_id, user_id, make_product):
        product = make_product()

        result = service.create_sale(SaleCreate(
            items=[SaleItemCreate(product_id=product.id, quantity=Decimal("0"))]
        ), tenant_id, user_id)

        assert result.error == "La cantidad debe ser mayor a cero"

    def test_unknown_product(self, service, tenant_id, user_id, sent_notifications):
        result = service.create_sale(SaleCreate(
            items=[SaleItemCreate(product_id=uuid4(), quantity=Decimal("1"))]
        ), tenant_id, user_id)

        assert result.error_type == ErrorType.NOT_FOUND_ERROR
        assert sent_notifications == []

    def test_unknown_customer(self, service, tenant_id, user_id, make_product):
        product = make_product()

        result = service.create_sale(SaleCreate(
            customer_id=uuid4(),
            items=[SaleItemCreate(product_id=product.id, quantity=Decimal("1"))]
        ), tenant_id, user_id)

        assert result.error == "Cliente no encontrado"


class TestSaleEndpoints:
    """Tests de /api/v1/sales"""

    def test_create_and_get(self, client, auth_headers, make_product):
        product = make_product(price="50")

        response = client.post(
            "/api/v1/sales",
            json={"items": [{"product_id": str(product.id), "quantity": "2"}]},
            headers=auth_headers
        )
        assert response.status_code == 201
        sale_id = response.json()["data"]["id"]

        response = client.get(f"/api/v1/sales/{sale_id}", headers=auth_headers)
        assert response.status_code == 200
        assert Decimal(response.json()["total"]) == Decimal("100")

    def test_get_unknown_sale(self, client, auth_headers):
        response = client.get(f"/api/v1/sales/{uuid4()}", headers=auth_headers)
        assert response.status_code == 404
