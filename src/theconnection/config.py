"""
Configuración centralizada del sistema.
Carga variables de entorno y define settings globales.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# config.py -> theconnection/ -> src/ -> raíz del proyecto
_PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"


class Settings(BaseSettings):
    """Configuración principal de la aplicación."""

    model_config = SettingsConfigDict(
        env_file=str(_ENV_FILE),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Supabase
    supabase_url: str = Field(..., description="URL del proyecto Supabase")
    supabase_key: str = Field(..., description="Anon key de Supabase")
    supabase_service_key: Optional[str] = Field(
        None, description="Service role key para operaciones admin"
    )

    # Telegram
    telegram_bot_token: str = Field(..., description="Token del bot de Telegram")
    telegram_webhook_url: Optional[str] = Field(
        None, description="URL pública base para webhook (ej: https://app.onrender.com)"
    )
    telegram_webhook_path: str = Field(
        "telegram", description="Path del webhook (sin / inicial)"
    )
    telegram_webhook_listen: str = Field(
        "0.0.0.0", description="Host de escucha para webhook"
    )

    # Starter communities
    starter_list_size: int = Field(
        8, ge=1, description="Máximo de comunidades sugeridas"
    )
    starter_max_matched: int = Field(
        6, ge=1, description="Máximo de comunidades con score > 0"
    )
    starter_min_matched: int = Field(
        4, ge=0, description="Debajo de este número se completa con populares"
    )

    # Selección de categorías
    min_categories: int = Field(3, ge=1, description="Categorías mínimas para terminar")
    max_categories: int = Field(5, ge=1, description="Categorías máximas seleccionables")

    # Logging
    log_level: str = Field("INFO", description="Nivel de logging")


@lru_cache
def get_settings() -> Settings:
    """Obtiene la configuración cacheada."""
    return Settings()


# Constantes del sistema
AVAILABLE_CATEGORIES = [
    # Etapa de vida
    "College Life",
    "Young Professional",
    "Single",
    "Dating & Relationships",
    "Newlywed",
    # Género
    "Men",
    "Women",
    # Fe y crecimiento
    "New to Faith",
    "Bible Study",
    "Prayer",
    "Worship & Music",
    "Apologetics",
    "Missions & Outreach",
    # Intereses y estilo de vida
    "Mental Health",
    "Career & Purpose",
    "Creative Arts",
    "Fitness & Sports",
    "Social Events",
    "Small Groups",
]

GENDER_CATEGORIES = ("Men", "Women")
