from ledgerpos.database.database import Base
from sqlalchemy import Column, String, Numeric, Boolean, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from uuid import uuid4
from ledgerpos.common.mixins import TenantMixin, TimestampMixin


class Product(Base, TenantMixin, TimestampMixin):
    """
    Producto vendible.

    El costo es el costo vigente: la utilidad mensual se calcula con este valor
    y no con el costo al momento de la venta.
    """
    __tablename__ = "products"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    sku = Column(String(100), nullable=False)
    price = Column(Numeric(15, 2), nullable=False, default=0)
    cost = Column(Numeric(15, 2), nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        UniqueConstraint("tenant_id", "sku", name="uq_product_tenant_sku"),
    )
