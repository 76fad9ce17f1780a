"""
Routers FastAPI para sesiones de caja

- Aperturas: crear, listar, apertura activa
- Movimientos: ingresos/retiros contra la apertura activa
- Cierres: totales del día por método de pago y arqueo
- Estado: efectivo esperado en la caja activa

Las escrituras devuelven {success, data, warning} o un error estructurado
con el status HTTP correspondiente al tipo de error.
"""

from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Path, Query, status
from sqlalchemy.orm import Session

from ledgerpos.common.errors import ActionSuccess, to_http_response
from ledgerpos.core.config import settings
from ledgerpos.database.database import get_db
from ledgerpos.modules.auth.dependencies import AuthDependencies
from ledgerpos.modules.auth.schemas import AuthContext
from ledgerpos.modules.cash_register.schemas import (
    CashMovementCreate, CashMovementOut, CashMovementsSummary,
    CashRegisterClosureCreate, CashRegisterClosureList, CashRegisterClosureOut,
    CashRegisterOpeningCreate, CashRegisterOpeningList, CashRegisterOpeningOut, CashStatus
)
from ledgerpos.modules.cash_register.service import CashSessionService

CASHIER_ROLES = ["owner", "admin", "seller", "cashier"]
READ_ROLES = ["owner", "admin", "seller", "cashier", "accountant", "viewer"]

cash_register_router = APIRouter(prefix="/cash-register", tags=["Cash Register"])


# ===== APERTURAS =====

@cash_register_router.post("/openings", response_model=ActionSuccess, status_code=status.HTTP_201_CREATED)
async def create_opening(
    opening_data: CashRegisterOpeningCreate,
    auth_context: AuthContext = Depends(AuthDependencies.require_role(CASHIER_ROLES)),
    db: Session = Depends(get_db)
):
    """
    Abrir caja.

    - **initial_cash_amount**: efectivo inicial, debe ser mayor a cero
    - **shift**: turno libre (mañana, tarde, noche...)

    Varias aperturas el mismo día (distintos turnos) están permitidas.
    """
    result = CashSessionService(db).create_opening(
        opening_data, auth_context.tenant_id, auth_context.user_id, auth_context.user_name
    )
    if not result.success:
        return to_http_response(result)
    return result


@cash_register_router.get("/openings", response_model=CashRegisterOpeningList)
async def list_openings(
    start_date: Optional[date] = Query(None, description="Desde"),
    end_date: Optional[date] = Query(None, description="Hasta"),
    shift: Optional[str] = Query(None, description="Turno"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(READ_ROLES)),
    db: Session = Depends(get_db)
):
    openings, total = CashSessionService(db).list_openings(
        auth_context.tenant_id, start_date, end_date, shift, limit, offset
    )
    return CashRegisterOpeningList(
        openings=[CashRegisterOpeningOut.model_validate(o) for o in openings],
        total=total, limit=limit, offset=offset
    )


@cash_register_router.get("/openings/active", response_model=CashRegisterOpeningOut)
async def get_active_opening(
    auth_context: AuthContext = Depends(AuthDependencies.require_role(READ_ROLES)),
    db: Session = Depends(get_db)
):
    """Apertura activa (sin cierre). 404 si la caja está cerrada."""
    opening = CashSessionService(db).get_active_opening(auth_context.tenant_id)
    if not opening:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No hay una apertura de caja activa")
    return opening


@cash_register_router.get("/openings/{opening_id}/movements/summary", response_model=CashMovementsSummary)
async def get_movements_summary(
    opening_id: UUID = Path(..., description="ID de la apertura"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(READ_ROLES)),
    db: Session = Depends(get_db)
):
    service = CashSessionService(db)
    if not service.get_opening(auth_context.tenant_id, opening_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Apertura de caja no encontrada")
    return service.get_movements_summary(auth_context.tenant_id, opening_id)


# ===== MOVIMIENTOS =====

@cash_register_router.post("/movements", response_model=ActionSuccess, status_code=status.HTTP_201_CREATED)
async def record_movement(
    movement_data: CashMovementCreate,
    auth_context: AuthContext = Depends(AuthDependencies.require_role(CASHIER_ROLES)),
    db: Session = Depends(get_db)
):
    """
    Registrar ingreso o retiro de efectivo.

    - **movement_type**: `income` o `withdrawal`
    - **amount**: mayor a cero
    - **description**: requerida

    Requiere una apertura activa.
    """
    result = CashSessionService(db).record_movement(
        movement_data, auth_context.tenant_id, auth_context.user_id, auth_context.user_name
    )
    if not result.success:
        return to_http_response(result)
    return result


@cash_register_router.get("/movements", response_model=List[CashMovementOut])
async def list_movements(
    opening_id: Optional[UUID] = Query(None, description="Apertura; por defecto la activa"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(READ_ROLES)),
    db: Session = Depends(get_db)
):
    return CashSessionService(db).get_movements(auth_context.tenant_id, opening_id)


# ===== CIERRES =====

@cash_register_router.post("/closures", response_model=ActionSuccess, status_code=status.HTTP_201_CREATED)
async def create_closure(
    closure_data: CashRegisterClosureCreate,
    auth_context: AuthContext = Depends(AuthDependencies.require_role(CASHIER_ROLES)),
    db: Session = Depends(get_db)
):
    """
    Cerrar caja.

    - Totaliza las ventas **completadas** del día por método de pago
    - **cash_counted**: efectivo contado; se calcula la diferencia contra ventas en efectivo
    - Cierra la apertura activa del día (y del turno si se indica)
    - Si no hay apertura se registra igual y se devuelve una advertencia
    """
    result = CashSessionService(db).create_closure(
        closure_data, auth_context.tenant_id, auth_context.user_id, auth_context.user_name
    )
    if not result.success:
        return to_http_response(result)
    return result


@cash_register_router.get("/closures", response_model=CashRegisterClosureList)
async def list_closures(
    start_date: Optional[date] = Query(None, description="Desde"),
    end_date: Optional[date] = Query(None, description="Hasta"),
    shift: Optional[str] = Query(None, description="Turno"),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(READ_ROLES)),
    db: Session = Depends(get_db)
):
    closures, total = CashSessionService(db).list_closures(
        auth_context.tenant_id, start_date, end_date, shift, limit, offset
    )
    return CashRegisterClosureList(
        closures=[CashRegisterClosureOut.model_validate(c) for c in closures],
        total=total, limit=limit, offset=offset
    )


# ===== ESTADO =====

@cash_register_router.get("/status", response_model=CashStatus)
async def get_cash_status(
    auth_context: AuthContext = Depends(AuthDependencies.require_role(READ_ROLES)),
    db: Session = Depends(get_db)
):
    """Efectivo esperado: inicial + ventas en efectivo − pagos en efectivo + ingresos − retiros"""
    cash_status = CashSessionService(db).get_cash_status(auth_context.tenant_id)
    if not cash_status:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No hay una apertura de caja activa")
    return cash_status
