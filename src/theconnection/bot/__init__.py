"""
Bot de Telegram para The Connection.

Provee interfaz conversacional para:
- Onboarding "Start Here" (categorías y starter communities)
- Unirse / salir de comunidades
- Revisión de solicitudes de ingreso por owners
"""

from theconnection.bot.telegram_bot import ConnectionBot
from theconnection.bot.handlers import StartHereHandler, JoinRequestHandler

__all__ = [
    "ConnectionBot",
    "StartHereHandler",
    "JoinRequestHandler",
]
