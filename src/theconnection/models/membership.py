"""
Modelos de membresía en comunidades.

Estados explícitos de membresía y códigos de resultado para cada
operación del servicio de membresías.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class MembershipStatus(str, Enum):
    APPROVED = "APPROVED"
    PENDING = "PENDING"
    REJECTED = "REJECTED"
    REMOVED = "REMOVED"


class MemberRole(str, Enum):
    OWNER = "owner"
    MODERATOR = "moderator"
    MEMBER = "member"


class MembershipResultCode(str, Enum):
    OK = "OK"
    COMMUNITY_NOT_FOUND = "COMMUNITY_NOT_FOUND"
    USER_NOT_FOUND = "USER_NOT_FOUND"
    NOT_AUTHORIZED = "NOT_AUTHORIZED"
    ALREADY_MEMBER = "ALREADY_MEMBER"
    ALREADY_PENDING = "ALREADY_PENDING"
    NOT_A_MEMBER = "NOT_A_MEMBER"
    INVALID_STATE = "INVALID_STATE"
    INVALID_INPUT = "INVALID_INPUT"
    ERROR = "ERROR"


class CommunityMember(BaseModel):
    """Fila de community_members."""

    model_config = ConfigDict(from_attributes=True, extra="ignore")

    id: Optional[int] = Field(None, description="ID generado por Supabase")
    community_id: int = Field(..., description="FK a communities")
    user_id: int = Field(..., description="FK a users")
    role: MemberRole = Field(default=MemberRole.MEMBER)
    # Filas viejas no tienen status: se consideran aprobadas
    status: MembershipStatus = Field(default=MembershipStatus.APPROVED)
    joined_at: str = Field(
        default_factory=lambda: datetime.utcnow().isoformat(),
    )
    acted_by_user_id: Optional[int] = None
    acted_at: Optional[str] = None

    @property
    def is_approved(self) -> bool:
        return self.status == MembershipStatus.APPROVED

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id"}, mode="json")


class MembershipResult(BaseModel):
    """Resultado de una operación de membresía."""

    status: MembershipResultCode
    success: bool
    code: str = Field(..., description="Código estable para el cliente")
    request_id: str
    reason: str = ""
    membership: Optional[CommunityMember] = None
    community_deleted: bool = False

    @property
    def is_pending(self) -> bool:
        return (
            self.membership is not None
            and self.membership.status == MembershipStatus.PENDING
        )

    @property
    def role(self) -> Optional[MemberRole]:
        return self.membership.role if self.membership else None
