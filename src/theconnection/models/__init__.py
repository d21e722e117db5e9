"""
Modelos de datos del sistema.

- Community: comunidades candidatas para el onboarding
- CommunityMember / MembershipResult: membresías y resultados
- User: usuario y su selección de categorías
"""

from theconnection.models.community import Community
from theconnection.models.membership import (
    CommunityMember,
    MemberRole,
    MembershipResult,
    MembershipResultCode,
    MembershipStatus,
)
from theconnection.models.user import User

__all__ = [
    # Comunidades
    "Community",
    # Membresías
    "CommunityMember",
    "MemberRole",
    "MembershipResult",
    "MembershipResultCode",
    "MembershipStatus",
    # Usuario
    "User",
]
