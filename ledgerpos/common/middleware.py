"""
Middleware de contexto de empresa (tenant) y cabeceras de seguridad

Toda ruta de negocio exige el header X-Company-ID con un UUID válido; el
valor queda en request.state.tenant_id. Las dependencias de autenticación
lo contrastan con el claim tenant_id del token.
"""
from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from uuid import UUID
import logging

logger = logging.getLogger(__name__)

TENANT_HEADER = "X-Company-ID"


def tenant_error(detail: str) -> JSONResponse:
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": detail})


class TenantMiddleware(BaseHTTPMiddleware):
    """Resuelve el tenant de cada request a partir de X-Company-ID"""

    # Documentación y health no dependen de una empresa
    EXEMPT_PREFIXES = ("/docs", "/redoc", "/openapi.json", "/health")
    EXEMPT_EXACT = ("/",)

    def is_exempt(self, request: Request) -> bool:
        path = request.url.path
        return (
            request.method == "OPTIONS"
            or path in self.EXEMPT_EXACT
            or path.startswith(self.EXEMPT_PREFIXES)
        )

    async def dispatch(self, request: Request, call_next):
        if self.is_exempt(request):
            return await call_next(request)

        raw_tenant = request.headers.get(TENANT_HEADER)
        if not raw_tenant:
            return tenant_error("Falta el header X-Company-ID")

        try:
            tenant_id = UUID(raw_tenant)
        except ValueError:
            return tenant_error("X-Company-ID inválido: debe ser un UUID")

        request.state.tenant_id = tenant_id
        logger.debug(f"{request.method} {request.url.path} tenant={tenant_id}")

        response = await call_next(request)
        response.headers["X-Tenant-ID"] = str(tenant_id)
        return response


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Agrega cabeceras de seguridad a todas las respuestas"""

    HEADERS = {
        "X-Content-Type-Options": "nosniff",
        "X-Frame-Options": "DENY",
        "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
        "Referrer-Policy": "strict-origin-when-cross-origin",
        "Cache-Control": "no-store",
    }

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        for name, value in self.HEADERS.items():
            response.headers.setdefault(name, value)
        return response
