"""
Fixtures compartidas para los tests de LedgerPOS

Cada test usa una base sqlite propia (archivo en tmp_path) para que el
resumen financiero pueda abrir varias sesiones en paralelo.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("DEBUG", "false")

from datetime import datetime
from decimal import Decimal
from uuid import uuid4

import jwt
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from ledgerpos.core.config import settings
from ledgerpos.database.database import Base, build_engine, get_db, get_session_factory
from ledgerpos.main import app
from ledgerpos.common.enums import PaymentStatus
from ledgerpos.modules.notifications import tasks as notification_tasks
from ledgerpos.modules.customers.models import Customer, CustomerStatus
from ledgerpos.modules.suppliers.models import Supplier, SupplierStatus
from ledgerpos.modules.products.models import Product
from ledgerpos.modules.sales.models import Sale, SaleItem, SalePayment, SaleStatus
from ledgerpos.modules.purchases.models import PurchaseOrder, PurchaseOrderStatus, SupplierPayment
from ledgerpos.modules.repairs.models import RepairItem, RepairOrder


# ===== BASE DE DATOS =====

@pytest.fixture
def engine(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'ledgerpos.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session(session_factory):
    session = session_factory()
    yield session
    session.close()


# ===== CONTEXTO =====

@pytest.fixture
def tenant_id():
    return uuid4()


@pytest.fixture
def other_tenant_id():
    return uuid4()


@pytest.fixture
def user_id():
    return uuid4()


@pytest.fixture(autouse=True)
def sent_notifications(monkeypatch):
    """Reemplaza la tarea de Celery: registra las notificaciones encoladas"""
    sent = []

    class RecordingTask:
        def delay(self, **kwargs):
            sent.append(kwargs)

    monkeypatch.setattr(notification_tasks, "create_notification_task", RecordingTask())
    return sent


# ===== API =====

@pytest.fixture
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_token(user_id, tenant_id, role="owner"):
    return jwt.encode(
        {"sub": str(user_id), "tenant_id": str(tenant_id), "user_role": role, "name": "Ana Cajera"},
        settings.APP_SECRET_STRING,
        algorithm=settings.ALGORITHM
    )


@pytest.fixture
def headers_for_role(tenant_id, user_id):
    def _headers(role):
        return {
            "Authorization": f"Bearer {make_token(user_id, tenant_id, role)}",
            "X-Company-ID": str(tenant_id),
        }
    return _headers


@pytest.fixture
def auth_headers(headers_for_role):
    return headers_for_role("owner")


# ===== DATOS =====

@pytest.fixture
def make_customer(db_session, tenant_id):
    def _make(name="Juan Pérez", status=CustomerStatus.ACTIVE, credit_limit=None, tenant=None):
        customer = Customer(
            id=uuid4(), tenant_id=tenant or tenant_id, name=name,
            status=status, credit_limit=credit_limit
        )
        db_session.add(customer)
        db_session.commit()
        return customer
    return _make


@pytest.fixture
def make_supplier(db_session, tenant_id):
    def _make(name="Distribuidora Sur", status=SupplierStatus.ACTIVE, tenant=None):
        supplier = Supplier(id=uuid4(), tenant_id=tenant or tenant_id, name=name, status=status)
        db_session.add(supplier)
        db_session.commit()
        return supplier
    return _make


@pytest.fixture
def make_product(db_session, tenant_id):
    def _make(name="Cable USB", price="100", cost="60", sku=None):
        product = Product(
            id=uuid4(), tenant_id=tenant_id, name=name, sku=sku or f"SKU-{uuid4().hex[:8]}",
            price=Decimal(price), cost=Decimal(cost)
        )
        db_session.add(product)
        db_session.commit()
        return product
    return _make


@pytest.fixture
def make_sale(db_session, tenant_id):
    """
    Crea una venta con pagos opcionales.

    payments: lista de (monto, método) o (monto, método, fecha)
    items: lista de (producto, cantidad, precio)
    """
    counter = {"n": 0}

    def _make(total="100", payments=(), sale_date=None, status=SaleStatus.COMPLETED,
              payment_status=None, customer=None, payment_method=None, items=(), tenant=None):
        counter["n"] += 1
        sale_date = sale_date or datetime.now()
        sale = Sale(
            id=uuid4(),
            tenant_id=tenant or tenant_id,
            sale_number=f"V-{counter['n']:04d}",
            customer_id=customer.id if customer else None,
            sale_date=sale_date,
            status=status,
            payment_method=payment_method,
            total=Decimal(total),
        )
        paid = Decimal("0")
        for payment in payments:
            amount, method = Decimal(payment[0]), payment[1]
            paid_at = payment[2] if len(payment) > 2 else sale_date
            sale.payments.append(SalePayment(
                id=uuid4(), tenant_id=sale.tenant_id, amount=amount,
                payment_method=method, payment_date=paid_at
            ))
            paid += amount
        for product, quantity, unit_price in items:
            sale.items.append(SaleItem(
                id=uuid4(), tenant_id=sale.tenant_id, product_id=product.id,
                quantity=Decimal(quantity), unit_price=Decimal(unit_price)
            ))
        if payment_status is None:
            if paid >= sale.total:
                payment_status = PaymentStatus.PAID
            elif paid > 0:
                payment_status = PaymentStatus.PARTIAL
            else:
                payment_status = PaymentStatus.PENDING
        sale.payment_status = payment_status
        db_session.add(sale)
        db_session.commit()
        return sale
    return _make


@pytest.fixture
def make_purchase_order(db_session, tenant_id):
    counter = {"n": 0}

    def _make(total="100", supplier=None, order_date=None, payment_status=PaymentStatus.PENDING,
              status=PurchaseOrderStatus.CONFIRMED):
        counter["n"] += 1
        order = PurchaseOrder(
            id=uuid4(),
            tenant_id=tenant_id,
            order_number=f"OC-{counter['n']:04d}",
            supplier_id=supplier.id if supplier else None,
            order_date=order_date or datetime.now(),
            status=status,
            payment_status=payment_status,
            total=Decimal(total),
        )
        db_session.add(order)
        db_session.commit()
        return order
    return _make


@pytest.fixture
def make_supplier_payment(db_session, tenant_id):
    def _make(supplier, amount, order=None, method="transferencia", payment_date=None):
        payment = SupplierPayment(
            id=uuid4(),
            tenant_id=tenant_id,
            supplier_id=supplier.id,
            purchase_order_id=order.id if order else None,
            amount=Decimal(amount),
            payment_method=method,
            payment_date=payment_date or datetime.now(),
        )
        db_session.add(payment)
        db_session.commit()
        return payment
    return _make


@pytest.fixture
def make_repair_order(db_session, tenant_id):
    def _make(labor_cost="50", items=(), customer=None):
        order = RepairOrder(
            id=uuid4(),
            tenant_id=tenant_id,
            order_number=f"R-{uuid4().hex[:6]}",
            customer_id=customer.id if customer else None,
            labor_cost=Decimal(labor_cost),
        )
        for description, subtotal in items:
            order.items.append(RepairItem(
                id=uuid4(), tenant_id=tenant_id, description=description,
                quantity=Decimal("1"), unit_price=Decimal(subtotal), subtotal=Decimal(subtotal)
            ))
        db_session.add(order)
        db_session.commit()
        return order
    return _make
