"""
Conexión a Supabase compartida por los repositorios.
"""

from functools import lru_cache
from typing import Optional

import structlog
from supabase import create_client, Client

from theconnection.config import Settings, get_settings

logger = structlog.get_logger()


class SupabaseClient:
    """Envuelve el Client de supabase-py; los repositorios solo usan table()."""

    def __init__(self, client: Client):
        self._client = client

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "SupabaseClient":
        """
        Crea el cliente a partir de Settings.

        Usa la service key si está configurada.

        Raises:
            ValueError: Si falta la URL o la key
        """
        settings = settings or get_settings()
        if not settings.supabase_url or not settings.supabase_key:
            raise ValueError(
                "Faltan SUPABASE_URL / SUPABASE_KEY en el entorno o en .env"
            )

        key = settings.supabase_service_key or settings.supabase_key
        logger.info(
            "Conectando a Supabase",
            url=settings.supabase_url,
            service_key=bool(settings.supabase_service_key),
        )
        return cls(create_client(settings.supabase_url, key))

    def table(self, name: str):
        return self._client.table(name)


@lru_cache
def get_supabase_client() -> SupabaseClient:
    """Cliente único por proceso."""
    return SupabaseClient.from_settings()
