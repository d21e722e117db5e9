"""
Servicio de membresías en comunidades.

Única fuente de verdad para unirse, salir y aprobar solicitudes:
- Códigos de resultado explícitos para cada operación
- request_id en cada log para trazabilidad
- Estados de membresía explícitos (APPROVED, PENDING, REJECTED, REMOVED)
"""

from datetime import datetime
from typing import Optional
from uuid import uuid4

import structlog

from theconnection.database import (
    CommunityRepository,
    MembershipRepository,
    UserRepository,
)
from theconnection.models import (
    CommunityMember,
    MemberRole,
    MembershipResult,
    MembershipResultCode,
    MembershipStatus,
)

logger = structlog.get_logger()

MANAGER_ROLES = (MemberRole.OWNER, MemberRole.MODERATOR)


def _valid_id(value) -> bool:
    return isinstance(value, int) and value > 0


def _now() -> str:
    return datetime.utcnow().isoformat()


class MembershipService:
    """
    Operaciones de membresía.

    Nunca lanza excepciones por condiciones de dominio: todo se
    devuelve como MembershipResult. Errores de base de datos se
    loguean y se devuelven con status ERROR.
    """

    def __init__(
        self,
        community_repo: Optional[CommunityRepository] = None,
        membership_repo: Optional[MembershipRepository] = None,
        user_repo: Optional[UserRepository] = None,
    ):
        self.community_repo = community_repo or CommunityRepository()
        self.membership_repo = membership_repo or MembershipRepository()
        self.user_repo = user_repo or UserRepository()

    def _result(
        self,
        log,
        status: MembershipResultCode,
        code: str,
        request_id: str,
        reason: str,
        success: Optional[bool] = None,
        membership: Optional[CommunityMember] = None,
        community_deleted: bool = False,
    ) -> MembershipResult:
        log.info("Membresía COMPLETE", status=status.value, code=code)
        return MembershipResult(
            status=status,
            success=status == MembershipResultCode.OK if success is None else success,
            code=code,
            request_id=request_id,
            reason=reason,
            membership=membership,
            community_deleted=community_deleted,
        )

    def _error(self, log, request_id: str, code: str, error: Exception) -> MembershipResult:
        log.error("Membresía ERROR", error=str(error))
        return MembershipResult(
            status=MembershipResultCode.ERROR,
            success=False,
            code=code,
            request_id=request_id,
            reason=f"Database error: {error}",
        )

    def resolve_membership(self, community_id: int, user_id: int) -> MembershipResult:
        """Resuelve la membresía de un usuario en una comunidad."""
        request_id = uuid4().hex
        log = logger.bind(
            operation="RESOLVE",
            request_id=request_id,
            community_id=community_id,
            user_id=user_id,
        )
        log.info("Membresía START")

        if not _valid_id(community_id) or not _valid_id(user_id):
            return self._result(
                log, MembershipResultCode.INVALID_INPUT, "MEMBERSHIP_INVALID_INPUT",
                request_id, "Community ID and User ID must be positive integers",
            )

        try:
            if not self.community_repo.get_by_id(community_id):
                return self._result(
                    log, MembershipResultCode.COMMUNITY_NOT_FOUND,
                    "MEMBERSHIP_COMMUNITY_NOT_FOUND", request_id,
                    "Community does not exist",
                )

            membership = self.membership_repo.get(community_id, user_id)
        except Exception as e:
            return self._error(log, request_id, "MEMBERSHIP_RESOLVE_FAILED", e)

        if not membership:
            # La consulta funcionó, simplemente no hay membresía
            return self._result(
                log, MembershipResultCode.NOT_A_MEMBER, "MEMBERSHIP_NOT_FOUND",
                request_id, "User is not a member of this community", success=True,
            )

        return self._result(
            log, MembershipResultCode.OK, "MEMBERSHIP_FOUND", request_id,
            "Membership resolved", membership=membership,
        )

    def request_join(self, community_id: int, user_id: int) -> MembershipResult:
        """
        Solicita unirse a una comunidad.

        - Comunidad pública: APPROVED inmediatamente
        - Comunidad privada: PENDING hasta que un owner/moderador apruebe
        - Sin owner aprobado: el usuario pasa a ser owner (y queda APPROVED)

        Returns:
            MembershipResult con la membresía creada o el motivo del rechazo
        """
        request_id = uuid4().hex
        log = logger.bind(
            operation="REQUEST_JOIN",
            request_id=request_id,
            community_id=community_id,
            user_id=user_id,
        )
        log.info("Membresía START")

        if not _valid_id(community_id) or not _valid_id(user_id):
            return self._result(
                log, MembershipResultCode.INVALID_INPUT, "MEMBERSHIP_INVALID_INPUT",
                request_id, "Community ID and User ID must be positive integers",
            )

        try:
            community = self.community_repo.get_by_id(community_id)
            if not community:
                return self._result(
                    log, MembershipResultCode.COMMUNITY_NOT_FOUND,
                    "MEMBERSHIP_COMMUNITY_NOT_FOUND", request_id,
                    "Community does not exist",
                )

            if not self.user_repo.get_by_id(user_id):
                return self._result(
                    log, MembershipResultCode.USER_NOT_FOUND,
                    "MEMBERSHIP_USER_NOT_FOUND", request_id, "User does not exist",
                )

            existing = self.membership_repo.get(community_id, user_id)
            if existing and existing.status == MembershipStatus.APPROVED:
                return self._result(
                    log, MembershipResultCode.ALREADY_MEMBER,
                    "MEMBERSHIP_ALREADY_MEMBER", request_id,
                    "User is already a member of this community",
                    membership=existing,
                )
            if existing and existing.status == MembershipStatus.PENDING:
                return self._result(
                    log, MembershipResultCode.ALREADY_PENDING,
                    "MEMBERSHIP_ALREADY_PENDING", request_id,
                    "User already has a pending join request",
                    membership=existing,
                )
            # REJECTED o REMOVED pueden volver a solicitar

            members = self.membership_repo.list_for_community(community_id)
            has_owner = any(
                m.role == MemberRole.OWNER and m.is_approved for m in members
            )
            role = MemberRole.MEMBER if has_owner else MemberRole.OWNER

            if community.is_private and has_owner:
                status = MembershipStatus.PENDING
            else:
                status = MembershipStatus.APPROVED

            now = _now()
            if existing:
                data = {
                    "role": role.value,
                    "status": status.value,
                    "joined_at": now,
                    "acted_by_user_id": None,
                    "acted_at": now,
                }
                membership = self.membership_repo.update(existing.id, data)
                if membership is None:
                    membership = existing.model_copy(update={
                        "role": role, "status": status, "joined_at": now,
                        "acted_by_user_id": None, "acted_at": now,
                    })
            else:
                membership = self.membership_repo.create(
                    CommunityMember(
                        community_id=community_id,
                        user_id=user_id,
                        role=role,
                        status=status,
                        joined_at=now,
                    )
                )
        except Exception as e:
            return self._error(log, request_id, "MEMBERSHIP_JOIN_FAILED", e)

        if status == MembershipStatus.PENDING:
            return self._result(
                log, MembershipResultCode.OK, "MEMBERSHIP_PENDING", request_id,
                "Join request submitted, waiting for approval",
                membership=membership,
            )

        return self._result(
            log, MembershipResultCode.OK, "MEMBERSHIP_APPROVED", request_id,
            "Successfully joined community", membership=membership,
        )

    def leave_community(self, community_id: int, user_id: int) -> MembershipResult:
        """
        Sale de una comunidad.

        Si sale el owner, la propiedad pasa al primer moderador aprobado
        o, si no hay, al primer miembro aprobado. Si no queda nadie,
        la comunidad se elimina (soft delete).
        """
        request_id = uuid4().hex
        log = logger.bind(
            operation="LEAVE",
            request_id=request_id,
            community_id=community_id,
            user_id=user_id,
        )
        log.info("Membresía START")

        if not _valid_id(community_id) or not _valid_id(user_id):
            return self._result(
                log, MembershipResultCode.INVALID_INPUT, "MEMBERSHIP_INVALID_INPUT",
                request_id, "Community ID and User ID are required",
            )

        try:
            membership = self.membership_repo.get(community_id, user_id)
            if not membership:
                return self._result(
                    log, MembershipResultCode.NOT_A_MEMBER, "MEMBERSHIP_NOT_FOUND",
                    request_id, "User is not a member of this community",
                )

            if not membership.is_approved:
                return self._result(
                    log, MembershipResultCode.INVALID_STATE,
                    "MEMBERSHIP_INVALID_STATE", request_id,
                    "User does not have an active membership",
                    membership=membership,
                )

            if membership.role == MemberRole.OWNER:
                others = [
                    m for m in self.membership_repo.list_for_community(community_id)
                    if m.is_approved and m.user_id != user_id
                ]

                if not others:
                    self.membership_repo.delete_for_community(community_id)
                    self.community_repo.soft_delete(community_id)
                    return self._result(
                        log, MembershipResultCode.OK,
                        "MEMBERSHIP_LEFT_COMMUNITY_DELETED", request_id,
                        "Left community (community deleted as last member)",
                        membership=membership, community_deleted=True,
                    )

                moderators = [m for m in others if m.role == MemberRole.MODERATOR]
                new_owner = moderators[0] if moderators else others[0]
                self.membership_repo.update(new_owner.id, {"role": MemberRole.OWNER.value})
                log.info("Ownership transferido", new_owner=new_owner.user_id)

            self.membership_repo.delete(membership.id)
        except Exception as e:
            return self._error(log, request_id, "MEMBERSHIP_LEAVE_FAILED", e)

        return self._result(
            log, MembershipResultCode.OK, "MEMBERSHIP_LEFT", request_id,
            "Successfully left community", membership=membership,
        )

    def approve_request(
        self, community_id: int, target_user_id: int, actor_id: int
    ) -> MembershipResult:
        """Aprueba una solicitud pendiente (solo owner o moderador)."""
        return self._decide_request(
            community_id, target_user_id, actor_id, MembershipStatus.APPROVED
        )

    def deny_request(
        self, community_id: int, target_user_id: int, actor_id: int
    ) -> MembershipResult:
        """Rechaza una solicitud pendiente (solo owner o moderador)."""
        return self._decide_request(
            community_id, target_user_id, actor_id, MembershipStatus.REJECTED
        )

    def _decide_request(
        self,
        community_id: int,
        target_user_id: int,
        actor_id: int,
        decision: MembershipStatus,
    ) -> MembershipResult:
        operation = "APPROVE" if decision == MembershipStatus.APPROVED else "DENY"
        request_id = uuid4().hex
        log = logger.bind(
            operation=operation,
            request_id=request_id,
            community_id=community_id,
            user_id=target_user_id,
            actor_id=actor_id,
        )
        log.info("Membresía START")

        if not all(_valid_id(v) for v in (community_id, target_user_id, actor_id)):
            return self._result(
                log, MembershipResultCode.INVALID_INPUT, "MEMBERSHIP_INVALID_INPUT",
                request_id, "Community, target and actor IDs must be positive integers",
            )

        try:
            actor = self.membership_repo.get(community_id, actor_id)
            if not actor or actor.role not in MANAGER_ROLES or not actor.is_approved:
                return self._result(
                    log, MembershipResultCode.NOT_AUTHORIZED,
                    "MEMBERSHIP_NOT_AUTHORIZED", request_id,
                    "Only owners and moderators can review join requests",
                )

            target = self.membership_repo.get(community_id, target_user_id)
            if not target:
                return self._result(
                    log, MembershipResultCode.NOT_A_MEMBER, "MEMBERSHIP_NOT_FOUND",
                    request_id, "No join request found for this user",
                )

            if target.status != MembershipStatus.PENDING:
                return self._result(
                    log, MembershipResultCode.INVALID_STATE,
                    "MEMBERSHIP_INVALID_STATE", request_id,
                    f"Cannot {operation.lower()}: membership status is "
                    f"{target.status.value}, expected PENDING",
                    membership=target,
                )

            now = _now()
            data = {
                "status": decision.value,
                "acted_by_user_id": actor_id,
                "acted_at": now,
            }
            updated = self.membership_repo.update(target.id, data)
            if updated is None:
                updated = target.model_copy(update={
                    "status": decision, "acted_by_user_id": actor_id, "acted_at": now,
                })
        except Exception as e:
            return self._error(log, request_id, f"MEMBERSHIP_{operation}_FAILED", e)

        if decision == MembershipStatus.APPROVED:
            return self._result(
                log, MembershipResultCode.OK, "MEMBERSHIP_REQUEST_APPROVED",
                request_id, "Join request approved", membership=updated,
            )
        return self._result(
            log, MembershipResultCode.OK, "MEMBERSHIP_REQUEST_DENIED",
            request_id, "Join request denied", membership=updated,
        )

    def owners_of(self, community_id: int) -> list[CommunityMember]:
        """Owners aprobados de una comunidad."""
        return [
            m for m in self.membership_repo.list_for_community(community_id)
            if m.role == MemberRole.OWNER and m.is_approved
        ]

    def joined_community_ids(self, user_id: int) -> set[int]:
        """IDs de comunidades donde el usuario es miembro aprobado."""
        return {
            m.community_id
            for m in self.membership_repo.list_for_user(user_id)
            if m.is_approved
        }
