"""
Servicios de negocio para sesiones de caja

Ciclo de vida por apertura: OPEN -> CLOSED (terminal)
- CashSessionService.create_opening: apertura con monto inicial > 0
- CashSessionService.record_movement: ingreso/retiro contra la apertura activa
- CashSessionService.create_closure: totales del día por método de pago y arqueo

Una apertura está activa mientras ningún cierre referencia su id. El cierre se
asocia a la apertura activa de esa fecha (y turno, si se indica); si no hay
ninguna se registra igual, sin apertura, y se devuelve una advertencia.
Los totales del cierre son siempre el agregado de ventas completadas del día.
"""

import logging
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional
from uuid import UUID

from sqlalchemy import exists
from sqlalchemy.orm import Session, selectinload

from ledgerpos.common.dates import day_range
from ledgerpos.common.errors import (
    ActionResult, ActionSuccess, ErrorContext, handle_server_error,
    not_found_error, validation_error
)
from ledgerpos.modules.cash_register.models import (
    CashMovement, CashMovementType, CashRegisterClosure, CashRegisterOpening
)
from ledgerpos.modules.cash_register.schemas import (
    CashMovementCreate, CashMovementOut, CashMovementsSummary,
    CashRegisterClosureCreate, CashRegisterClosureOut,
    CashRegisterOpeningCreate, CashRegisterOpeningOut, CashStatus, SalesBreakdown
)
from ledgerpos.modules.purchases.models import SupplierPayment
from ledgerpos.modules.sales.models import Sale, SaleStatus
from ledgerpos.modules.settlement.balance import to_decimal

logger = logging.getLogger(__name__)

NO_ACTIVE_OPENING_MESSAGE = (
    "No hay una apertura de caja activa. Debe abrir la caja antes de registrar movimientos"
)
NO_OPENING_FOR_CLOSURE_WARNING = (
    "No se encontró apertura para esta fecha y turno. El cierre se registró sin apertura asociada"
)


# ===== CLASIFICACIÓN POR MÉTODO DE PAGO =====

CASH_KEYWORDS = ("efectivo", "cash")
CARD_KEYWORDS = ("tarjeta", "card", "débito", "crédito")
TRANSFER_KEYWORDS = ("transferencia", "transfer")


def classify_payment_method(method: Optional[str]) -> str:
    """cash | card | transfer | other por coincidencia parcial, sin distinguir mayúsculas"""
    name = (method or "").lower()
    if any(keyword in name for keyword in CASH_KEYWORDS):
        return "cash"
    if any(keyword in name for keyword in CARD_KEYWORDS):
        return "card"
    if any(keyword in name for keyword in TRANSFER_KEYWORDS):
        return "transfer"
    return "other"


def calculate_sales_breakdown(sales: Iterable[Sale]) -> SalesBreakdown:
    """
    Reparte las ventas por método de pago.

    Si la venta tiene pagos se reparte cada pago; si no, el total de la venta
    según el método declarado en la propia venta.
    """
    totals = {"cash": Decimal("0"), "card": Decimal("0"), "transfer": Decimal("0"), "other": Decimal("0")}
    count = 0
    amount = Decimal("0")

    for sale in sales:
        count += 1
        amount += to_decimal(sale.total)
        if sale.payments:
            for payment in sale.payments:
                totals[classify_payment_method(payment.payment_method)] += to_decimal(payment.amount)
        else:
            totals[classify_payment_method(sale.payment_method)] += to_decimal(sale.total)

    return SalesBreakdown(
        total_sales_count=count,
        total_sales_amount=amount,
        cash_sales=totals["cash"],
        card_sales=totals["card"],
        transfer_sales=totals["transfer"],
        other_sales=totals["other"]
    )


def calculate_cash_difference(cash_counted: Optional[Decimal], cash_sales: Decimal) -> Optional[Decimal]:
    if cash_counted is None:
        return None
    return to_decimal(cash_counted) - to_decimal(cash_sales)


class CashSessionService:
    """Servicio para aperturas, movimientos y cierres de caja"""

    def __init__(self, db: Session):
        self.db = db

    # ===== CONSULTAS =====

    def _active_openings_query(self, tenant_id: UUID):
        closed = exists().where(CashRegisterClosure.opening_id == CashRegisterOpening.id)
        return self.db.query(CashRegisterOpening).filter(
            CashRegisterOpening.tenant_id == tenant_id,
            ~closed
        ).order_by(
            CashRegisterOpening.opening_date.desc(),
            CashRegisterOpening.created_at.desc()
        )

    def get_active_opening(self, tenant_id: UUID) -> Optional[CashRegisterOpening]:
        """Apertura más reciente sin cierre que la referencie"""
        return self._active_openings_query(tenant_id).first()

    def find_opening_for_closure(self, tenant_id: UUID, closure_date: date,
                                 shift: Optional[str] = None) -> Optional[CashRegisterOpening]:
        query = self._active_openings_query(tenant_id).filter(
            CashRegisterOpening.opening_date == closure_date
        )
        if shift:
            query = query.filter(CashRegisterOpening.shift == shift)
        return query.first()

    def get_opening(self, tenant_id: UUID, opening_id: UUID) -> Optional[CashRegisterOpening]:
        return self.db.query(CashRegisterOpening).filter(
            CashRegisterOpening.id == opening_id,
            CashRegisterOpening.tenant_id == tenant_id
        ).first()

    def list_openings(self, tenant_id: UUID, start_date: Optional[date] = None,
                      end_date: Optional[date] = None, shift: Optional[str] = None,
                      limit: int = 20, offset: int = 0):
        query = self.db.query(CashRegisterOpening).filter(CashRegisterOpening.tenant_id == tenant_id)
        if start_date:
            query = query.filter(CashRegisterOpening.opening_date >= start_date)
        if end_date:
            query = query.filter(CashRegisterOpening.opening_date <= end_date)
        if shift:
            query = query.filter(CashRegisterOpening.shift == shift)

        total = query.count()
        openings = query.order_by(
            CashRegisterOpening.opening_date.desc(),
            CashRegisterOpening.created_at.desc()
        ).offset(offset).limit(limit).all()
        return openings, total

    def list_closures(self, tenant_id: UUID, start_date: Optional[date] = None,
                      end_date: Optional[date] = None, shift: Optional[str] = None,
                      limit: int = 20, offset: int = 0):
        query = self.db.query(CashRegisterClosure).filter(CashRegisterClosure.tenant_id == tenant_id)
        if start_date:
            query = query.filter(CashRegisterClosure.closure_date >= start_date)
        if end_date:
            query = query.filter(CashRegisterClosure.closure_date <= end_date)
        if shift:
            query = query.filter(CashRegisterClosure.shift == shift)

        total = query.count()
        closures = query.order_by(
            CashRegisterClosure.closure_date.desc(),
            CashRegisterClosure.created_at.desc()
        ).offset(offset).limit(limit).all()
        return closures, total

    def get_completed_sales_for_day(self, tenant_id: UUID, day: date) -> List[Sale]:
        start, end = day_range(day)
        return self.db.query(Sale).options(
            selectinload(Sale.payments)
        ).filter(
            Sale.tenant_id == tenant_id,
            Sale.status == SaleStatus.COMPLETED,
            Sale.sale_date >= start,
            Sale.sale_date < end
        ).all()

    # ===== APERTURA =====

    def create_opening(self, data: CashRegisterOpeningCreate, tenant_id: UUID,
                       user_id: UUID, user_name: Optional[str] = None) -> ActionResult:
        """Abrir caja. No se bloquea si ya existe otra apertura activa."""
        if data.initial_cash_amount is None or data.initial_cash_amount <= 0:
            return validation_error("El monto inicial debe ser mayor a cero")

        try:
            opening = CashRegisterOpening(
                tenant_id=tenant_id,
                opening_date=data.opening_date,
                shift=data.shift,
                opened_by=user_id,
                opened_by_name=user_name,
                initial_cash_amount=data.initial_cash_amount,
                notes=data.notes
            )
            self.db.add(opening)
            self.db.commit()
            self.db.refresh(opening)

            logger.info(f"Cash register opened for tenant {tenant_id} ({opening.opening_date} {opening.shift})")
            return ActionSuccess(data=CashRegisterOpeningOut.model_validate(opening))

        except Exception as e:
            self.db.rollback()
            return handle_server_error(
                e, ErrorContext(operation="create_cash_register_opening", tenant_id=tenant_id, user_id=user_id),
                "Error al crear la apertura de caja"
            )

    # ===== MOVIMIENTOS =====

    def record_movement(self, data: CashMovementCreate, tenant_id: UUID,
                        user_id: UUID, user_name: Optional[str] = None) -> ActionResult:
        """Registrar ingreso o retiro contra la apertura activa"""
        if data.amount is None or data.amount <= 0:
            return validation_error("El monto debe ser mayor a cero")
        if not data.description or not data.description.strip():
            return validation_error("La descripción es requerida")
        try:
            movement_type = CashMovementType(data.movement_type)
        except ValueError:
            return validation_error("Tipo de movimiento inválido")

        try:
            opening = self.get_active_opening(tenant_id)
            if not opening:
                return validation_error(NO_ACTIVE_OPENING_MESSAGE)

            movement = CashMovement(
                tenant_id=tenant_id,
                opening_id=opening.id,
                movement_type=movement_type,
                amount=data.amount,
                description=data.description.strip(),
                created_by=user_id,
                created_by_name=user_name
            )
            self.db.add(movement)
            self.db.commit()
            self.db.refresh(movement)

            return ActionSuccess(data=CashMovementOut.model_validate(movement))

        except Exception as e:
            self.db.rollback()
            return handle_server_error(
                e, ErrorContext(operation="record_cash_movement", tenant_id=tenant_id, user_id=user_id),
                "Error al registrar el movimiento de caja"
            )

    def get_movements(self, tenant_id: UUID, opening_id: Optional[UUID] = None) -> List[CashMovement]:
        """Movimientos de una apertura; por defecto los de la apertura activa"""
        if opening_id is None:
            opening = self.get_active_opening(tenant_id)
            if not opening:
                return []
            opening_id = opening.id

        return self.db.query(CashMovement).filter(
            CashMovement.tenant_id == tenant_id,
            CashMovement.opening_id == opening_id
        ).order_by(CashMovement.created_at.desc()).all()

    def get_movements_summary(self, tenant_id: UUID, opening_id: UUID) -> CashMovementsSummary:
        movements = self.get_movements(tenant_id, opening_id)
        total_income = sum(
            (to_decimal(m.amount) for m in movements if m.movement_type == CashMovementType.INCOME),
            Decimal("0")
        )
        total_withdrawals = sum(
            (to_decimal(m.amount) for m in movements if m.movement_type == CashMovementType.WITHDRAWAL),
            Decimal("0")
        )
        return CashMovementsSummary(
            opening_id=opening_id,
            total_income=total_income,
            total_withdrawals=total_withdrawals,
            net_movement=total_income - total_withdrawals,
            movements_count=len(movements)
        )

    # ===== CIERRE =====

    def create_closure(self, data: CashRegisterClosureCreate, tenant_id: UUID,
                       user_id: UUID, user_name: Optional[str] = None) -> ActionResult:
        """
        Cerrar caja con los totales de ventas completadas del día.

        - Reparte ventas/pagos en efectivo, tarjeta, transferencia y otros
        - cash_difference = cash_counted − cash_sales cuando se informa el conteo
        - Asocia la apertura activa del día (y turno); sin apertura devuelve advertencia
        """
        if data.cash_counted is not None and data.cash_counted < 0:
            return validation_error("El efectivo contado no puede ser negativo")

        try:
            if data.opening_id:
                opening = self.get_opening(tenant_id, data.opening_id)
                if not opening:
                    return not_found_error("Apertura de caja no encontrada")
                if not opening.is_active:
                    return validation_error("La apertura de caja ya fue cerrada")
            else:
                opening = self.find_opening_for_closure(tenant_id, data.closure_date, data.shift)

            breakdown = calculate_sales_breakdown(
                self.get_completed_sales_for_day(tenant_id, data.closure_date)
            )

            closure = CashRegisterClosure(
                tenant_id=tenant_id,
                opening_id=opening.id if opening else None,
                closure_date=data.closure_date,
                shift=data.shift or (opening.shift if opening else None),
                closed_by=user_id,
                closed_by_name=user_name,
                total_sales_count=breakdown.total_sales_count,
                total_sales_amount=breakdown.total_sales_amount,
                cash_sales=breakdown.cash_sales,
                card_sales=breakdown.card_sales,
                transfer_sales=breakdown.transfer_sales,
                other_sales=breakdown.other_sales,
                cash_counted=data.cash_counted,
                cash_difference=calculate_cash_difference(data.cash_counted, breakdown.cash_sales),
                notes=data.notes
            )
            self.db.add(closure)
            self.db.commit()
            self.db.refresh(closure)

            warning = None
            if not opening:
                warning = NO_OPENING_FOR_CLOSURE_WARNING
                logger.warning(
                    f"Closure {closure.id} for tenant {tenant_id} on {data.closure_date} "
                    f"created without opening (shift={data.shift})"
                )

            logger.info(
                f"Cash register closed for tenant {tenant_id} on {data.closure_date}: "
                f"{breakdown.total_sales_count} sales, total {breakdown.total_sales_amount}"
            )
            return ActionSuccess(data=CashRegisterClosureOut.model_validate(closure), warning=warning)

        except Exception as e:
            self.db.rollback()
            return handle_server_error(
                e, ErrorContext(
                    operation="create_cash_register_closure", tenant_id=tenant_id, user_id=user_id,
                    entity_id=data.opening_id, extra={"closure_date": str(data.closure_date)}
                ),
                "Error al crear el cierre de caja"
            )

    # ===== ESTADO =====

    def get_cash_status(self, tenant_id: UUID) -> Optional[CashStatus]:
        """
        Efectivo esperado en la caja activa; None si no hay apertura activa.

        Solo cuentan ventas y pagos a proveedores registrados después de la
        apertura.
        """
        opening = self.get_active_opening(tenant_id)
        if not opening:
            return None

        sales = self.db.query(Sale).options(
            selectinload(Sale.payments)
        ).filter(
            Sale.tenant_id == tenant_id,
            Sale.status == SaleStatus.COMPLETED,
            Sale.created_at > opening.created_at
        ).all()
        breakdown = calculate_sales_breakdown(sales)

        supplier_payments = self.db.query(SupplierPayment).filter(
            SupplierPayment.tenant_id == tenant_id,
            SupplierPayment.created_at > opening.created_at
        ).all()
        cash_supplier_payments = sum(
            (to_decimal(p.amount) for p in supplier_payments
             if classify_payment_method(p.payment_method) == "cash"),
            Decimal("0")
        )

        summary = self.get_movements_summary(tenant_id, opening.id)
        initial = to_decimal(opening.initial_cash_amount)

        return CashStatus(
            opening=CashRegisterOpeningOut.model_validate(opening),
            initial_cash_amount=initial,
            cash_sales=breakdown.cash_sales,
            cash_supplier_payments=cash_supplier_payments,
            total_income=summary.total_income,
            total_withdrawals=summary.total_withdrawals,
            expected_cash=(
                initial + breakdown.cash_sales - cash_supplier_payments
                + summary.total_income - summary.total_withdrawals
            )
        )
