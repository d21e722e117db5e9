"""
Servicio de membresías.

Unirse, salir y revisar solicitudes de comunidades privadas.
"""

from theconnection.membership.service import MembershipService

__all__ = [
    "MembershipService",
]
