"""
Módulo de base de datos.

Provee acceso a Supabase y operaciones CRUD.
"""

from theconnection.database.supabase_client import get_supabase_client, SupabaseClient
from theconnection.database.repositories import (
    CommunityRepository,
    MembershipRepository,
    UserRepository,
)

__all__ = [
    "get_supabase_client",
    "SupabaseClient",
    "CommunityRepository",
    "MembershipRepository",
    "UserRepository",
]
