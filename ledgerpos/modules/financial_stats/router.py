from fastapi import APIRouter, Depends
from sqlalchemy.orm import sessionmaker

from ledgerpos.database.database import get_session_factory
from ledgerpos.modules.auth.dependencies import AuthDependencies
from ledgerpos.modules.auth.schemas import AuthContext
from ledgerpos.modules.financial_stats.schemas import FinancialStats
from ledgerpos.modules.financial_stats.service import FinancialStatsService

financial_stats_router = APIRouter(prefix="/financial-stats", tags=["Financial Stats"])


@financial_stats_router.get("", response_model=FinancialStats)
def get_financial_stats(
    auth_context: AuthContext = Depends(AuthDependencies.require_role(["owner", "admin", "accountant", "viewer"])),
    session_factory: sessionmaker = Depends(get_session_factory)
):
    """
    Resumen financiero del día y del mes.

    - **daily_sales**: ventas confirmadas/completadas de hoy
    - **current_cash_balance**: monto inicial de la última apertura de caja
    - **accounts_receivable** / **accounts_payable**: saldos positivos de clientes/proveedores activos
    - **monthly_profit**: (precio − costo vigente) × cantidad del mes en curso
    """
    return FinancialStatsService(session_factory).get_financial_stats(auth_context.tenant_id)
