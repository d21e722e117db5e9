"""Fixtures compartidas."""

import pytest

from theconnection.config import Settings
from theconnection.models import Community


@pytest.fixture
def settings():
    """Settings de test, sin leer .env."""
    return Settings(
        supabase_url="http://localhost:54321",
        supabase_key="test-key",
        telegram_bot_token="123456:TEST",
        _env_file=None,
    )


@pytest.fixture
def make_community():
    """Factory de comunidades con defaults mínimos."""

    def _make(id, name="Community", description="", member_count=0, **fields):
        return Community(
            id=id,
            name=name,
            description=description,
            member_count=member_count,
            **fields,
        )

    return _make
