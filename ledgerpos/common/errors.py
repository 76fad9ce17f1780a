"""
Manejo estructurado de errores de negocio.

Responsabilidades:
- Clasificar errores del almacenamiento en una taxonomía cerrada (ErrorType)
- Traducir cada tipo a un mensaje en español apto para el usuario
- Registrar el detalle completo en el log del servidor (operación, tenant, entidad)
- Devolver una respuesta saneada: nunca stack traces ni mensajes crudos

Los servicios de escritura devuelven ActionSuccess o StructuredErrorResponse en
lugar de lanzar excepciones; los routers traducen el tipo de error a un status HTTP.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from uuid import UUID

from fastapi import status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from sqlalchemy.exc import DBAPIError, IntegrityError

logger = logging.getLogger(__name__)


# ===== TAXONOMÍA =====

class ErrorType(str, enum.Enum):
    RLS_ERROR = "RLS_ERROR"
    CONSTRAINT_ERROR = "CONSTRAINT_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    PLAN_LIMIT_ERROR = "PLAN_LIMIT_ERROR"
    NOT_FOUND_ERROR = "NOT_FOUND_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


RLS_CODES = {"42501"}
CONSTRAINT_CODES = {"23505", "23503", "23502"}

PLAN_LIMIT_KEYWORDS = ("plan", "limit", "subscription")
VALIDATION_KEYWORDS = ("invalid", "validation", "required")

DEFAULT_MESSAGES: Dict[ErrorType, str] = {
    ErrorType.RLS_ERROR: "No tienes permisos para realizar esta operación",
    ErrorType.CONSTRAINT_ERROR: "La operación viola una restricción de datos (registro duplicado o referencia inválida)",
    ErrorType.VALIDATION_ERROR: "Los datos enviados no son válidos",
    ErrorType.PLAN_LIMIT_ERROR: "Has alcanzado el límite de tu plan actual",
    ErrorType.NOT_FOUND_ERROR: "El recurso solicitado no existe",
    ErrorType.UNKNOWN_ERROR: "Ocurrió un error inesperado. Intenta nuevamente",
}

HTTP_STATUS_BY_TYPE: Dict[ErrorType, int] = {
    ErrorType.VALIDATION_ERROR: status.HTTP_400_BAD_REQUEST,
    ErrorType.PLAN_LIMIT_ERROR: status.HTTP_402_PAYMENT_REQUIRED,
    ErrorType.RLS_ERROR: status.HTTP_403_FORBIDDEN,
    ErrorType.NOT_FOUND_ERROR: status.HTTP_404_NOT_FOUND,
    ErrorType.CONSTRAINT_ERROR: status.HTTP_409_CONFLICT,
    ErrorType.UNKNOWN_ERROR: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


# ===== RESPUESTAS =====

class ErrorDetails(BaseModel):
    code: Optional[str] = Field(None, description="Código estructurado del almacenamiento")
    hint: Optional[str] = Field(None, description="Sugerencia para resolver el error")


class StructuredErrorResponse(BaseModel):
    success: bool = Field(False, description="Siempre False")
    error: str = Field(..., description="Mensaje para el usuario")
    error_type: ErrorType = Field(..., description="Tipo de error")
    error_details: Optional[ErrorDetails] = Field(None, description="Detalle saneado")


class ActionSuccess(BaseModel):
    success: bool = Field(True, description="Siempre True")
    data: Any = Field(None, description="Resultado de la operación")
    warning: Optional[str] = Field(None, description="Advertencia no bloqueante")


ActionResult = Union[ActionSuccess, StructuredErrorResponse]


@dataclass
class ErrorContext:
    """Contexto que se registra en el log junto al error crudo"""
    operation: str
    tenant_id: Optional[UUID] = None
    user_id: Optional[UUID] = None
    entity_id: Optional[UUID] = None
    extra: Dict[str, Any] = field(default_factory=dict)


# ===== CLASIFICACIÓN =====

def extract_error_code(error: Exception) -> Optional[str]:
    """Obtiene el SQLSTATE del driver si existe (psycopg2 expone pgcode)."""
    orig = getattr(error, "orig", None) if isinstance(error, DBAPIError) else error
    for attr in ("pgcode", "sqlstate"):
        code = getattr(orig, attr, None)
        if isinstance(code, str) and code:
            return code
    return None


def classify_error(error: Exception) -> ErrorType:
    """
    Clasifica un error en la taxonomía.

    El código estructurado tiene prioridad; luego IntegrityError sin código;
    por último palabras clave del mensaje.
    """
    code = extract_error_code(error)
    if code in RLS_CODES:
        return ErrorType.RLS_ERROR
    if code in CONSTRAINT_CODES:
        return ErrorType.CONSTRAINT_ERROR
    if isinstance(error, IntegrityError):
        return ErrorType.CONSTRAINT_ERROR

    message = str(error).lower()
    if any(keyword in message for keyword in PLAN_LIMIT_KEYWORDS):
        return ErrorType.PLAN_LIMIT_ERROR
    if any(keyword in message for keyword in VALIDATION_KEYWORDS):
        return ErrorType.VALIDATION_ERROR
    return ErrorType.UNKNOWN_ERROR


def get_user_message(error_type: ErrorType) -> str:
    return DEFAULT_MESSAGES.get(error_type, DEFAULT_MESSAGES[ErrorType.UNKNOWN_ERROR])


def get_error_hint(error_type: ErrorType) -> Optional[str]:
    if error_type == ErrorType.RLS_ERROR:
        return "Verifica que el registro pertenezca a tu empresa"
    if error_type == ErrorType.CONSTRAINT_ERROR:
        return "Revisa que no exista un registro igual y que las referencias sean válidas"
    if error_type == ErrorType.PLAN_LIMIT_ERROR:
        return "Actualiza tu plan para continuar"
    return None


# ===== CONSTRUCTORES =====

def validation_error(message: str) -> StructuredErrorResponse:
    return StructuredErrorResponse(error=message, error_type=ErrorType.VALIDATION_ERROR)


def not_found_error(message: str) -> StructuredErrorResponse:
    return StructuredErrorResponse(error=message, error_type=ErrorType.NOT_FOUND_ERROR)


def handle_server_error(
    error: Exception,
    context: ErrorContext,
    user_message: Optional[str] = None
) -> StructuredErrorResponse:
    """
    Registra el error completo y devuelve una respuesta saneada.

    - **error**: excepción original (driver, ORM o negocio)
    - **context**: operación, tenant, usuario y entidad afectada
    - **user_message**: mensaje específico de la operación; si el tipo
      de error es conocido se usa el mensaje del tipo
    """
    error_type = classify_error(error)
    code = extract_error_code(error)

    logger.error(
        f"[{context.operation}] {error_type.value} tenant={context.tenant_id} "
        f"user={context.user_id} entity={context.entity_id} code={code} "
        f"extra={context.extra} error={error!r}",
        exc_info=True
    )

    if error_type == ErrorType.UNKNOWN_ERROR and user_message:
        message = user_message
    else:
        message = get_user_message(error_type)

    details = None
    if code or get_error_hint(error_type):
        details = ErrorDetails(code=code, hint=get_error_hint(error_type))

    return StructuredErrorResponse(error=message, error_type=error_type, error_details=details)


def to_http_response(result: StructuredErrorResponse) -> JSONResponse:
    """Traduce una respuesta de error estructurada a una respuesta HTTP."""
    return JSONResponse(
        status_code=HTTP_STATUS_BY_TYPE.get(result.error_type, status.HTTP_500_INTERNAL_SERVER_ERROR),
        content=result.model_dump(mode="json", exclude_none=True)
    )
