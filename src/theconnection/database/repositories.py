"""
Repositorios para operaciones CRUD en Supabase.

Cada repositorio maneja una tabla/entidad específica.
"""

from datetime import datetime
from typing import Optional

import structlog

from theconnection.database.supabase_client import get_supabase_client, SupabaseClient
from theconnection.models import Community, CommunityMember, User

logger = structlog.get_logger()


class BaseRepository:
    """Clase base para repositorios."""

    def __init__(self, client: Optional[SupabaseClient] = None):
        self._client = client or get_supabase_client()

    @property
    def client(self) -> SupabaseClient:
        return self._client


class CommunityRepository(BaseRepository):
    """Repositorio para comunidades."""

    TABLE = "communities"

    def get_all(self) -> list[Community]:
        """Obtiene todas las comunidades activas (sin soft delete)."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .is_("deleted_at", "null")
            .execute()
        )
        return [Community.model_validate(row) for row in response.data]

    def get_by_id(self, community_id: int) -> Optional[Community]:
        """Obtiene una comunidad activa por su ID."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("id", community_id)
            .is_("deleted_at", "null")
            .limit(1)
            .execute()
        )
        return Community.model_validate(response.data[0]) if response.data else None

    def soft_delete(self, community_id: int) -> bool:
        """Marca la comunidad como eliminada."""
        response = (
            self.client.table(self.TABLE)
            .update({"deleted_at": datetime.utcnow().isoformat()})
            .eq("id", community_id)
            .execute()
        )
        logger.info("Comunidad eliminada (soft delete)", community_id=community_id)
        return len(response.data) > 0


class MembershipRepository(BaseRepository):
    """Repositorio para community_members."""

    TABLE = "community_members"

    def get(self, community_id: int, user_id: int) -> Optional[CommunityMember]:
        """Obtiene la membresía de un usuario en una comunidad."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("community_id", community_id)
            .eq("user_id", user_id)
            .limit(1)
            .execute()
        )
        return CommunityMember.model_validate(response.data[0]) if response.data else None

    def list_for_community(self, community_id: int) -> list[CommunityMember]:
        """Obtiene todas las membresías de una comunidad, por antigüedad."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("community_id", community_id)
            .order("joined_at")
            .execute()
        )
        return [CommunityMember.model_validate(row) for row in response.data]

    def list_for_user(self, user_id: int) -> list[CommunityMember]:
        """Obtiene todas las membresías de un usuario."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("user_id", user_id)
            .execute()
        )
        return [CommunityMember.model_validate(row) for row in response.data]

    def create(self, member: CommunityMember) -> CommunityMember:
        """Inserta una nueva membresía."""
        response = self.client.table(self.TABLE).insert(member.to_db_dict()).execute()
        logger.info(
            "Membresía creada",
            community_id=member.community_id,
            user_id=member.user_id,
            role=member.role.value,
            status=member.status.value,
        )
        return CommunityMember.model_validate(response.data[0]) if response.data else member

    def update(self, member_id: int, data: dict) -> Optional[CommunityMember]:
        """Actualiza campos de una membresía."""
        response = (
            self.client.table(self.TABLE)
            .update(data)
            .eq("id", member_id)
            .execute()
        )
        return CommunityMember.model_validate(response.data[0]) if response.data else None

    def delete(self, member_id: int) -> bool:
        """Elimina una membresía."""
        response = (
            self.client.table(self.TABLE)
            .delete()
            .eq("id", member_id)
            .execute()
        )
        return len(response.data) > 0

    def delete_for_community(self, community_id: int) -> int:
        """Elimina todas las membresías de una comunidad."""
        response = (
            self.client.table(self.TABLE)
            .delete()
            .eq("community_id", community_id)
            .execute()
        )
        return len(response.data)


class UserRepository(BaseRepository):
    """Repositorio para usuarios."""

    TABLE = "users"

    def create(self, user: User) -> dict:
        """Crea un nuevo usuario."""
        data = user.to_db_dict()
        response = self.client.table(self.TABLE).insert(data).execute()
        logger.info(
            "Usuario creado",
            telegram_id=user.telegram_id,
            username=user.telegram_username,
        )
        return response.data[0] if response.data else {}

    def get_by_telegram_id(self, telegram_id: int) -> Optional[dict]:
        """Obtiene un usuario por su ID de Telegram."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("telegram_id", telegram_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def get_by_id(self, user_id: int) -> Optional[dict]:
        """Obtiene un usuario por su ID."""
        response = (
            self.client.table(self.TABLE)
            .select("*")
            .eq("id", user_id)
            .limit(1)
            .execute()
        )
        return response.data[0] if response.data else None

    def get_or_create(self, telegram_id: int, username: Optional[str] = None) -> dict:
        """Obtiene un usuario existente o crea uno nuevo."""
        existing = self.get_by_telegram_id(telegram_id)
        if existing:
            return existing

        user = User(telegram_id=telegram_id, telegram_username=username)
        return self.create(user)

    def save_selected_categories(self, telegram_id: int, categories: list[str]) -> dict:
        """Guarda las categorías elegidas en Start Here."""
        data = {
            "selected_categories": categories,
            "updated_at": datetime.utcnow().isoformat(),
        }
        response = (
            self.client.table(self.TABLE)
            .update(data)
            .eq("telegram_id", telegram_id)
            .execute()
        )
        logger.info(
            "Categorías actualizadas",
            telegram_id=telegram_id,
            categories=len(categories),
        )
        return response.data[0] if response.data else {}

    def set_start_here_completed(self, telegram_id: int, completed: bool = True) -> dict:
        """Marca el onboarding Start Here como completado."""
        response = (
            self.client.table(self.TABLE)
            .update({
                "start_here_completed": completed,
                "updated_at": datetime.utcnow().isoformat(),
            })
            .eq("telegram_id", telegram_id)
            .execute()
        )
        return response.data[0] if response.data else {}
