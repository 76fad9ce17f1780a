"""
Calculadora de saldos.

Funciones puras sobre cualquier documento que exponga `total` y `payments`
(Sale, PurchaseOrder, RepairOrder). No acceden a la base de datos.
"""

from decimal import Decimal
from typing import Any, Iterable

from ledgerpos.common.enums import PaymentStatus


def to_decimal(value: Any) -> Decimal:
    """Normaliza montos (Decimal, int, float o str) a Decimal"""
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _amount_of(payment: Any) -> Decimal:
    if isinstance(payment, dict):
        return to_decimal(payment.get("amount"))
    return to_decimal(payment.amount)


def sum_payments(payments: Iterable[Any]) -> Decimal:
    """Suma de los montos de los pagos (objetos con .amount o dicts)"""
    return sum((_amount_of(payment) for payment in payments), Decimal("0"))


def calculate_balance(total: Any, payments: Iterable[Any]) -> Decimal:
    """
    Saldo = total − Σ pagos.

    No se recorta a cero: un saldo negativo indica sobrepago y debe mostrarse.
    """
    return to_decimal(total) - sum_payments(payments)


def derive_payment_status(paid: Any, total: Any) -> PaymentStatus:
    """paid si lo pagado cubre el total, partial si hay algo pagado, pending si nada"""
    paid = to_decimal(paid)
    total = to_decimal(total)
    if paid >= total:
        return PaymentStatus.PAID
    if paid > 0:
        return PaymentStatus.PARTIAL
    return PaymentStatus.PENDING
