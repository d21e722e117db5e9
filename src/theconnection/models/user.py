"""
Modelo de Usuario

Guarda la selección de categorías del onboarding "Start Here"
y si el usuario ya lo completó.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class User(BaseModel):
    """Usuario del sistema con su selección de categorías."""

    model_config = ConfigDict(from_attributes=True)

    # Identificadores
    id: Optional[int] = Field(None, description="ID generado por Supabase")
    telegram_id: int = Field(..., description="ID único de Telegram")
    telegram_username: Optional[str] = Field(None, description="Username de Telegram")
    display_name: Optional[str] = Field(None)

    # Onboarding
    selected_categories: list[str] = Field(
        default_factory=list, description="Categorías elegidas en Start Here"
    )
    start_here_completed: bool = Field(
        default=False, description="Completó el onboarding Start Here"
    )

    # Metadatos
    created_at: str = Field(
        default_factory=lambda: datetime.utcnow().isoformat(),
        description="Fecha de registro",
    )
    updated_at: str = Field(
        default_factory=lambda: datetime.utcnow().isoformat(),
        description="Última actualización",
    )

    def to_db_dict(self) -> dict:
        """Convierte a diccionario para inserción en Supabase."""
        return self.model_dump(exclude={"id"})
