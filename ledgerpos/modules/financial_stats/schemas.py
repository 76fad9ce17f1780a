from pydantic import BaseModel, Field
from decimal import Decimal
from datetime import datetime


class FinancialStats(BaseModel):
    """Foto financiera del tenant; se recalcula en cada consulta"""
    daily_sales: Decimal = Field(description="Ventas confirmadas/completadas de hoy")
    current_cash_balance: Decimal = Field(description="Monto inicial de la última apertura de caja")
    accounts_receivable: Decimal = Field(description="Σ saldos positivos de clientes activos")
    accounts_payable: Decimal = Field(description="Σ saldos positivos de proveedores activos")
    monthly_profit: Decimal = Field(description="Utilidad bruta del mes con costo vigente")
    currency: str = Field(description="Moneda")
    last_updated: datetime = Field(description="Momento del cálculo")
