"""
Enums compartidos entre los documentos (ventas, órdenes de compra, reparaciones)
"""
import enum


class PaymentStatus(enum.Enum):
    """Estado de pago derivado: nunca lo fija el usuario, solo la aplicación de pagos"""
    PENDING = "pending"     # Sin pagos registrados
    PARTIAL = "partial"     # Pagado parcialmente
    PAID = "paid"           # Pagado (incluye sobrepago)


# Estados que componen las cuentas por cobrar / pagar
OUTSTANDING_STATUSES = (PaymentStatus.PENDING, PaymentStatus.PARTIAL)
