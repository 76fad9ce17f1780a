from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, status
from sqlalchemy.orm import Session

from ledgerpos.common.errors import ActionSuccess, to_http_response
from ledgerpos.database.database import get_db
from ledgerpos.modules.auth.dependencies import AuthDependencies
from ledgerpos.modules.auth.schemas import AuthContext
from ledgerpos.modules.sales.schemas import SaleCreate, SaleOut
from ledgerpos.modules.sales.service import SaleService, to_sale_out

sales_router = APIRouter(prefix="/sales", tags=["Sales"])


@sales_router.post("", response_model=ActionSuccess, status_code=status.HTTP_201_CREATED)
async def create_sale(
    sale_data: SaleCreate,
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["owner", "admin", "seller", "cashier"])),
    db: Session = Depends(get_db)
):
    """
    Registrar una venta.

    - El total se calcula a partir de las líneas
    - El estado de pago inicia en **pending**
    - Notifica "new_sale" en segundo plano
    """
    result = SaleService(db).create_sale(sale_data, auth_context.tenant_id, auth_context.user_id)
    if not result.success:
        return to_http_response(result)
    return result


@sales_router.get("/{sale_id}", response_model=SaleOut)
async def get_sale(
    sale_id: UUID = Path(..., description="ID de la venta"),
    auth_context: AuthContext = Depends(AuthDependencies.require_any_role()),
    db: Session = Depends(get_db)
):
    sale = SaleService(db).get_sale(auth_context.tenant_id, sale_id)
    if not sale:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venta no encontrada")
    return to_sale_out(sale)
