"""
Router de liquidación de cuentas (cuentas por cobrar y por pagar a una fecha de corte)
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ledgerpos.database.database import get_db
from ledgerpos.modules.auth.dependencies import AuthDependencies
from ledgerpos.modules.auth.schemas import AuthContext
from ledgerpos.modules.settlement.export import create_pdf_response, create_xlsx_response
from ledgerpos.modules.settlement.schemas import ExportFormat, SettlementReport
from ledgerpos.modules.settlement.service import SettlementService

settlement_router = APIRouter(prefix="/accounts-settlement", tags=["Accounts Settlement"])


@settlement_router.get("", response_model=SettlementReport)
async def get_accounts_settlement(
    cutoff_date: Optional[date] = Query(None, description="Fecha de corte (YYYY-MM-DD), por defecto hoy"),
    export: Optional[ExportFormat] = Query(None, description="Exportar como xlsx o pdf"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["owner", "admin", "accountant"])),
    db: Session = Depends(get_db)
):
    """
    Liquidación de cuentas a la fecha de corte.

    - Solo documentos con estado de pago **pending** o **partial**
    - Solo documentos con fecha menor o igual al corte
    - Ordenados por días vencidos (mayor primero)
    - **export**: `xlsx` (hojas Resumen, Cuentas por Cobrar, Cuentas por Pagar) o `pdf`
    """
    cutoff_date = cutoff_date or date.today()
    report = SettlementService(db).get_accounts_settlement(auth_context.tenant_id, cutoff_date)

    if export == ExportFormat.XLSX:
        return create_xlsx_response(report)
    if export == ExportFormat.PDF:
        return create_pdf_response(report)
    return report
