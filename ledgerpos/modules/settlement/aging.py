"""
Clasificador de antigüedad de saldos (aging).

- Días vencidos respecto a una fecha de corte
- Filtros por estado de pago y por fecha
- Orden estable por días vencidos (descendente)
- Agrupación en rangos de antigüedad
"""

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Sequence, TypeVar, Union

from ledgerpos.common.enums import PaymentStatus

T = TypeVar("T")

DateLike = Union[date, datetime]


def as_datetime(value: DateLike) -> datetime:
    """Una fecha sin hora se interpreta como medianoche"""
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.min)


def end_of_day(value: DateLike) -> datetime:
    """Una fecha de corte sin hora incluye el día completo"""
    if isinstance(value, datetime):
        return value
    return datetime.combine(value, time.max)


def calculate_days_overdue(cutoff_date: DateLike, transaction_date: DateLike) -> int:
    """
    floor((corte − transacción) / 1 día).

    Puede ser negativo si la transacción es posterior al corte.
    """
    delta = as_datetime(cutoff_date) - as_datetime(transaction_date)
    return delta // timedelta(days=1)


def _status_value(status: Any) -> str:
    return status.value if isinstance(status, PaymentStatus) else str(status)


def filter_by_payment_status(docs: Iterable[T], statuses: Iterable[Any]) -> List[T]:
    """Mantiene los documentos cuyo payment_status está en statuses (enum o str)"""
    allowed = {_status_value(s) for s in statuses}
    return [doc for doc in docs if _status_value(doc.payment_status) in allowed]


def filter_by_date(docs: Iterable[T], cutoff_date: DateLike) -> List[T]:
    """Mantiene los documentos con fecha menor o igual al corte"""
    limit = end_of_day(cutoff_date)
    return [doc for doc in docs if as_datetime(doc.document_date) <= limit]


def _days_of(account: Any) -> int:
    if isinstance(account, dict):
        return account["days_overdue"]
    return account.days_overdue


def sort_by_days_overdue(accounts: Sequence[T]) -> List[T]:
    """Orden descendente por días vencidos; sorted() es estable ante empates"""
    return sorted(accounts, key=_days_of, reverse=True)


# ===== RANGOS DE ANTIGÜEDAD =====

AGING_BUCKETS = ("current", "days_31_to_60", "days_61_to_90", "over_90")


def bucket_for(days_overdue: int) -> str:
    if days_overdue <= 30:
        return "current"
    if days_overdue <= 60:
        return "days_31_to_60"
    if days_overdue <= 90:
        return "days_61_to_90"
    return "over_90"


def calculate_aging_buckets(accounts: Iterable[Any]) -> Dict[str, Decimal]:
    """Suma de saldos por rango: ≤30, 31–60, 61–90 y >90 días"""
    buckets = {name: Decimal("0") for name in AGING_BUCKETS}
    for account in accounts:
        balance = account["balance"] if isinstance(account, dict) else account.balance
        buckets[bucket_for(_days_of(account))] += balance
    return buckets
