"""
Routers de cuentas corrientes de clientes y proveedores
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, Path
from sqlalchemy.orm import Session

from ledgerpos.database.database import get_db
from ledgerpos.modules.auth.dependencies import AuthDependencies
from ledgerpos.modules.auth.schemas import AuthContext
from ledgerpos.modules.accounts.schemas import AccountBalance, AccountMovement, AccountStatement, PartyType
from ledgerpos.modules.accounts.service import AccountReconcilerService

ACCOUNT_ROLES = ["owner", "admin", "accountant", "seller"]


# ===== CLIENTES =====

customer_accounts_router = APIRouter(prefix="/customers", tags=["Current Accounts"])


@customer_accounts_router.get("/{customer_id}/account", response_model=List[AccountMovement])
async def get_customer_account_movements(
    customer_id: UUID = Path(..., description="ID del cliente"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ACCOUNT_ROLES)),
    db: Session = Depends(get_db)
):
    """
    Movimientos de la cuenta corriente del cliente, más reciente primero.

    Cada venta es un débito y cada pago un crédito; **balance** es el saldo
    acumulado desde el inicio de la historia hasta ese movimiento.
    """
    return AccountReconcilerService(db).get_customer_account_movements(auth_context.tenant_id, customer_id)


@customer_accounts_router.get("/{customer_id}/balance", response_model=AccountBalance)
async def get_customer_balance(
    customer_id: UUID = Path(..., description="ID del cliente"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ACCOUNT_ROLES)),
    db: Session = Depends(get_db)
):
    """Saldo del cliente: suma de los saldos de cada venta"""
    balance = AccountReconcilerService(db).get_customer_balance(auth_context.tenant_id, customer_id)
    return AccountBalance(party_id=customer_id, party_type=PartyType.CUSTOMER, balance=balance)


@customer_accounts_router.get("/{customer_id}/statement", response_model=AccountStatement)
async def get_customer_statement(
    customer_id: UUID = Path(..., description="ID del cliente"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ACCOUNT_ROLES)),
    db: Session = Depends(get_db)
):
    """Estado de cuenta del cliente con límite de crédito y totales"""
    return AccountReconcilerService(db).get_customer_statement(auth_context.tenant_id, customer_id)


# ===== PROVEEDORES =====

supplier_accounts_router = APIRouter(prefix="/suppliers", tags=["Current Accounts"])


@supplier_accounts_router.get("/{supplier_id}/account", response_model=List[AccountMovement])
async def get_supplier_account_movements(
    supplier_id: UUID = Path(..., description="ID del proveedor"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ACCOUNT_ROLES)),
    db: Session = Depends(get_db)
):
    """Órdenes de compra (débito) y pagos al proveedor (crédito), más reciente primero"""
    return AccountReconcilerService(db).get_supplier_account_movements(auth_context.tenant_id, supplier_id)


@supplier_accounts_router.get("/{supplier_id}/balance", response_model=AccountBalance)
async def get_supplier_balance(
    supplier_id: UUID = Path(..., description="ID del proveedor"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ACCOUNT_ROLES)),
    db: Session = Depends(get_db)
):
    """Saldo del proveedor: total de órdenes menos total de pagos"""
    balance = AccountReconcilerService(db).get_supplier_balance(auth_context.tenant_id, supplier_id)
    return AccountBalance(party_id=supplier_id, party_type=PartyType.SUPPLIER, balance=balance)


@supplier_accounts_router.get("/{supplier_id}/statement", response_model=AccountStatement)
async def get_supplier_statement(
    supplier_id: UUID = Path(..., description="ID del proveedor"),
    auth_context: AuthContext = Depends(AuthDependencies.require_role(ACCOUNT_ROLES)),
    db: Session = Depends(get_db)
):
    return AccountReconcilerService(db).get_supplier_statement(auth_context.tenant_id, supplier_id)
