"""
Modelo de Comunidad

Representa una comunidad tal como la devuelve el listado de comunidades,
con los campos estructurados que usa el matcher de onboarding.
"""

from datetime import datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Los campos estructurados pueden venir como string o como lista
AttributeValue = Optional[Union[str, list[str]]]


class Community(BaseModel):
    """
    Comunidad candidata a ser sugerida como "starter community".

    Acepta tanto filas de Supabase (snake_case) como payloads de la API
    (camelCase: memberCount, ministryTypes, recoverySupport...).
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        extra="ignore",
    )

    # Identificación
    id: int = Field(..., description="ID numérico único")
    name: str = Field(..., description="Nombre visible")
    description: str = Field(default="", description="Descripción libre")
    slug: Optional[str] = Field(None)
    icon_name: Optional[str] = Field(None)
    icon_color: Optional[str] = Field(None)

    # Estado
    member_count: Optional[int] = Field(None, description="Cantidad de miembros")
    is_private: bool = Field(default=False, description="Requiere aprobación")
    is_member: bool = Field(default=False, description="El usuario ya es miembro")

    # Campos estructurados (filtros)
    age_group: AttributeValue = None
    gender: AttributeValue = None
    life_stages: AttributeValue = None
    ministry_types: AttributeValue = None
    activities: AttributeValue = None
    professions: AttributeValue = None
    recovery_support: AttributeValue = None
    meeting_type: AttributeValue = None
    frequency: AttributeValue = None

    deleted_at: Optional[datetime] = Field(None, description="Soft delete")

    @field_validator("description", mode="before")
    @classmethod
    def _none_description(cls, value):
        return value or ""

    @property
    def popularity(self) -> int:
        """Cantidad de miembros, tratando None como 0."""
        return self.member_count or 0
