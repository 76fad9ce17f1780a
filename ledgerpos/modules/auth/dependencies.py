"""
Dependencias de autenticación para FastAPI.

Los tokens los emite el proveedor de identidad; aquí solo se validan y se
extrae el contexto (usuario, empresa, rol). Claims esperados:
sub (usuario), tenant_id (empresa), user_role y name.
"""
from typing import Any, Dict, Optional
from uuid import UUID
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
import jwt

from ledgerpos.modules.auth.schemas import AuthContext
from ledgerpos.core.config import settings

security = HTTPBearer()

ALL_ROLES = ["owner", "admin", "seller", "cashier", "accountant", "viewer"]


def credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="No se pudieron validar las credenciales",
        headers={"WWW-Authenticate": "Bearer"},
    )


def decode_token(token: str) -> Dict[str, Any]:
    """Valida firma y expiración; exige el claim sub con un UUID"""
    try:
        payload = jwt.decode(token, settings.APP_SECRET_STRING, algorithms=[settings.ALGORITHM])
        UUID(str(payload["sub"]))
    except (jwt.PyJWTError, KeyError, ValueError):
        raise credentials_error()
    return payload


def parse_tenant(raw_tenant: Any) -> UUID:
    try:
        return UUID(str(raw_tenant))
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="ID de empresa inválido")


def resolve_tenant(payload: Dict[str, Any], request: Request) -> Optional[UUID]:
    """
    Empresa del request: claim tenant_id, o el header X-Company-ID si el
    token no la trae. Si vienen ambos deben coincidir.
    """
    header_tenant = request.headers.get("X-Company-ID")
    claim_tenant = payload.get("tenant_id")
    raw_tenant = claim_tenant or header_tenant or getattr(request.state, "tenant_id", None)
    if raw_tenant is None:
        return None

    tenant_id = parse_tenant(raw_tenant)
    if claim_tenant and header_tenant and parse_tenant(header_tenant) != tenant_id:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No tienes acceso a esta empresa")
    return tenant_id


class AuthDependencies:
    """Dependencias de autenticación reutilizables."""

    @staticmethod
    def get_auth_context(
        request: Request,
        credentials: HTTPAuthorizationCredentials = Depends(security)
    ) -> AuthContext:
        payload = decode_token(credentials.credentials)
        return AuthContext(
            user_id=UUID(str(payload["sub"])),
            tenant_id=resolve_tenant(payload, request),
            user_role=payload.get("user_role"),
            user_name=payload.get("name")
        )

    @staticmethod
    def require_role(allowed_roles: list[str]):
        """
        Dependencia para requerir roles específicos dentro de una empresa.
        """
        def role_checker(auth_context: AuthContext = Depends(AuthDependencies.get_auth_context)):
            if not auth_context.tenant_id:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Se requiere seleccionar una empresa"
                )
            if auth_context.user_role not in allowed_roles:
                raise HTTPException(
                    status_code=status.HTTP_403_FORBIDDEN,
                    detail=f"Se requiere uno de estos roles: {', '.join(allowed_roles)}"
                )
            return auth_context
        return role_checker

    @staticmethod
    def require_any_role():
        """Cualquier rol activo en la empresa."""
        return AuthDependencies.require_role(ALL_ROLES)
