from pydantic import BaseModel, Field
from typing import Optional
from uuid import UUID


class AuthContext(BaseModel):
    """Identidad resuelta una vez por request y pasada explícitamente a los servicios"""
    user_id: UUID
    tenant_id: Optional[UUID] = None
    user_role: Optional[str] = None
    user_name: Optional[str] = Field(None, description="Nombre para auditoría (aperturas, movimientos)")
