"""
Tests del servicio de membresías.

Los repositorios se reemplazan por MagicMock; se verifica el código de
resultado y las escrituras que el servicio pide a la base.
"""

from unittest.mock import MagicMock

import pytest

from theconnection.membership import MembershipService
from theconnection.models import (
    Community,
    CommunityMember,
    MemberRole,
    MembershipResultCode,
    MembershipStatus,
)


def member(user_id, role=MemberRole.MEMBER, status=MembershipStatus.APPROVED, id=None, community_id=1):
    return CommunityMember(
        id=id or user_id * 100,
        community_id=community_id,
        user_id=user_id,
        role=role,
        status=status,
    )


@pytest.fixture
def repos():
    community_repo = MagicMock()
    membership_repo = MagicMock()
    user_repo = MagicMock()

    community_repo.get_by_id.return_value = Community(id=1, name="Prayer Warriors")
    user_repo.get_by_id.return_value = {"id": 7, "telegram_id": 700}
    membership_repo.get.return_value = None
    membership_repo.list_for_community.return_value = []
    membership_repo.create.side_effect = lambda m: m.model_copy(update={"id": 10})
    membership_repo.update.return_value = None

    return community_repo, membership_repo, user_repo


@pytest.fixture
def service(repos):
    community_repo, membership_repo, user_repo = repos
    return MembershipService(
        community_repo=community_repo,
        membership_repo=membership_repo,
        user_repo=user_repo,
    )


class TestRequestJoin:

    def test_first_member_of_public_community_becomes_owner(self, service, repos):
        result = service.request_join(1, 7)

        assert result.success is True
        assert result.status == MembershipResultCode.OK
        assert result.code == "MEMBERSHIP_APPROVED"
        assert result.role == MemberRole.OWNER
        assert result.membership.status == MembershipStatus.APPROVED
        assert result.membership.id == 10
        assert result.request_id

    def test_public_community_with_owner_joins_as_member(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.list_for_community.return_value = [member(2, role=MemberRole.OWNER)]

        result = service.request_join(1, 7)

        assert result.code == "MEMBERSHIP_APPROVED"
        assert result.role == MemberRole.MEMBER
        assert result.is_pending is False

    def test_private_community_with_owner_is_pending(self, service, repos):
        community_repo, membership_repo, _ = repos
        community_repo.get_by_id.return_value = Community(id=1, name="Inner Circle", is_private=True)
        membership_repo.list_for_community.return_value = [member(2, role=MemberRole.OWNER)]

        result = service.request_join(1, 7)

        assert result.success is True
        assert result.code == "MEMBERSHIP_PENDING"
        assert result.is_pending is True
        assert result.role == MemberRole.MEMBER

    def test_private_community_without_owner_approves_new_owner(self, service, repos):
        community_repo, membership_repo, _ = repos
        community_repo.get_by_id.return_value = Community(id=1, name="Inner Circle", is_private=True)
        membership_repo.list_for_community.return_value = [
            member(2, role=MemberRole.OWNER, status=MembershipStatus.REMOVED),
        ]

        result = service.request_join(1, 7)

        assert result.code == "MEMBERSHIP_APPROVED"
        assert result.role == MemberRole.OWNER

    def test_already_member(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.get.return_value = member(7)

        result = service.request_join(1, 7)

        assert result.status == MembershipResultCode.ALREADY_MEMBER
        assert result.success is False
        membership_repo.create.assert_not_called()

    def test_already_pending(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.get.return_value = member(7, status=MembershipStatus.PENDING)

        result = service.request_join(1, 7)

        assert result.status == MembershipResultCode.ALREADY_PENDING
        membership_repo.create.assert_not_called()

    def test_rejected_user_can_request_again(self, service, repos):
        community_repo, membership_repo, _ = repos
        community_repo.get_by_id.return_value = Community(id=1, name="Inner Circle", is_private=True)
        membership_repo.get.return_value = member(7, status=MembershipStatus.REJECTED, id=55)
        membership_repo.list_for_community.return_value = [member(2, role=MemberRole.OWNER)]

        result = service.request_join(1, 7)

        assert result.code == "MEMBERSHIP_PENDING"
        membership_repo.create.assert_not_called()
        member_id, data = membership_repo.update.call_args[0]
        assert member_id == 55
        assert data["status"] == "PENDING"
        assert data["acted_by_user_id"] is None

    def test_community_not_found(self, service, repos):
        community_repo, membership_repo, _ = repos
        community_repo.get_by_id.return_value = None

        result = service.request_join(1, 7)

        assert result.status == MembershipResultCode.COMMUNITY_NOT_FOUND
        membership_repo.create.assert_not_called()

    def test_user_not_found(self, service, repos):
        _, _, user_repo = repos
        user_repo.get_by_id.return_value = None

        result = service.request_join(1, 7)

        assert result.status == MembershipResultCode.USER_NOT_FOUND

    @pytest.mark.parametrize("community_id,user_id", [(0, 7), (1, -3), (None, 7), ("1", 7)])
    def test_invalid_input(self, service, repos, community_id, user_id):
        community_repo, _, _ = repos

        result = service.request_join(community_id, user_id)

        assert result.status == MembershipResultCode.INVALID_INPUT
        community_repo.get_by_id.assert_not_called()

    def test_database_error_is_reported(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.create.side_effect = RuntimeError("connection reset")

        result = service.request_join(1, 7)

        assert result.status == MembershipResultCode.ERROR
        assert result.code == "MEMBERSHIP_JOIN_FAILED"
        assert "connection reset" in result.reason


class TestLeaveCommunity:

    def test_not_a_member(self, service):
        result = service.leave_community(1, 7)

        assert result.status == MembershipResultCode.NOT_A_MEMBER
        assert result.success is False

    def test_pending_member_cannot_leave(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.get.return_value = member(7, status=MembershipStatus.PENDING)

        result = service.leave_community(1, 7)

        assert result.status == MembershipResultCode.INVALID_STATE
        membership_repo.delete.assert_not_called()

    def test_member_leaves(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.get.return_value = member(7, id=70)

        result = service.leave_community(1, 7)

        assert result.code == "MEMBERSHIP_LEFT"
        assert result.community_deleted is False
        membership_repo.delete.assert_called_once_with(70)
        membership_repo.update.assert_not_called()

    def test_owner_leaving_transfers_to_moderator(self, service, repos):
        _, membership_repo, _ = repos
        owner = member(7, role=MemberRole.OWNER, id=70)
        membership_repo.get.return_value = owner
        membership_repo.list_for_community.return_value = [
            owner,
            member(2, id=20),
            member(3, role=MemberRole.MODERATOR, id=30),
        ]

        result = service.leave_community(1, 7)

        assert result.code == "MEMBERSHIP_LEFT"
        membership_repo.update.assert_called_once_with(30, {"role": "owner"})
        membership_repo.delete.assert_called_once_with(70)

    def test_owner_leaving_transfers_to_first_member(self, service, repos):
        _, membership_repo, _ = repos
        owner = member(7, role=MemberRole.OWNER, id=70)
        membership_repo.get.return_value = owner
        membership_repo.list_for_community.return_value = [
            owner,
            member(4, status=MembershipStatus.PENDING, id=40),
            member(2, id=20),
        ]

        service.leave_community(1, 7)

        membership_repo.update.assert_called_once_with(20, {"role": "owner"})

    def test_last_owner_leaving_deletes_community(self, service, repos):
        community_repo, membership_repo, _ = repos
        owner = member(7, role=MemberRole.OWNER, id=70)
        membership_repo.get.return_value = owner
        membership_repo.list_for_community.return_value = [owner]

        result = service.leave_community(1, 7)

        assert result.success is True
        assert result.code == "MEMBERSHIP_LEFT_COMMUNITY_DELETED"
        assert result.community_deleted is True
        membership_repo.delete_for_community.assert_called_once_with(1)
        community_repo.soft_delete.assert_called_once_with(1)
        membership_repo.delete.assert_not_called()


class TestReviewRequests:

    def _pending_setup(self, membership_repo, actor_role=MemberRole.OWNER):
        actor = member(2, role=actor_role, id=20)
        target = member(7, status=MembershipStatus.PENDING, id=70)
        membership_repo.get.side_effect = lambda cid, uid: {2: actor, 7: target}.get(uid)

    def test_owner_approves(self, service, repos):
        _, membership_repo, _ = repos
        self._pending_setup(membership_repo)

        result = service.approve_request(1, 7, 2)

        assert result.code == "MEMBERSHIP_REQUEST_APPROVED"
        assert result.membership.status == MembershipStatus.APPROVED
        assert result.membership.acted_by_user_id == 2
        member_id, data = membership_repo.update.call_args[0]
        assert member_id == 70
        assert data["status"] == "APPROVED"

    def test_moderator_denies(self, service, repos):
        _, membership_repo, _ = repos
        self._pending_setup(membership_repo, actor_role=MemberRole.MODERATOR)

        result = service.deny_request(1, 7, 2)

        assert result.code == "MEMBERSHIP_REQUEST_DENIED"
        assert result.membership.status == MembershipStatus.REJECTED

    def test_plain_member_not_authorized(self, service, repos):
        _, membership_repo, _ = repos
        self._pending_setup(membership_repo, actor_role=MemberRole.MEMBER)

        result = service.approve_request(1, 7, 2)

        assert result.status == MembershipResultCode.NOT_AUTHORIZED
        membership_repo.update.assert_not_called()

    def test_target_not_pending(self, service, repos):
        _, membership_repo, _ = repos
        actor = member(2, role=MemberRole.OWNER)
        membership_repo.get.side_effect = lambda cid, uid: actor if uid == 2 else member(7)

        result = service.approve_request(1, 7, 2)

        assert result.status == MembershipResultCode.INVALID_STATE
        assert "expected PENDING" in result.reason

    def test_missing_target(self, service, repos):
        _, membership_repo, _ = repos
        actor = member(2, role=MemberRole.OWNER)
        membership_repo.get.side_effect = lambda cid, uid: actor if uid == 2 else None

        result = service.deny_request(1, 7, 2)

        assert result.status == MembershipResultCode.NOT_A_MEMBER


class TestQueries:

    def test_resolve_membership_not_a_member_is_success(self, service):
        result = service.resolve_membership(1, 7)

        assert result.status == MembershipResultCode.NOT_A_MEMBER
        assert result.success is True

    def test_resolve_membership_found(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.get.return_value = member(7)

        result = service.resolve_membership(1, 7)

        assert result.code == "MEMBERSHIP_FOUND"
        assert result.membership.user_id == 7

    def test_joined_community_ids_only_approved(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.list_for_user.return_value = [
            member(7, community_id=1),
            member(7, community_id=2, status=MembershipStatus.PENDING),
            member(7, community_id=3),
        ]

        assert service.joined_community_ids(7) == {1, 3}

    def test_owners_of(self, service, repos):
        _, membership_repo, _ = repos
        membership_repo.list_for_community.return_value = [
            member(2, role=MemberRole.OWNER),
            member(3),
            member(4, role=MemberRole.OWNER, status=MembershipStatus.REMOVED),
        ]

        assert [m.user_id for m in service.owners_of(1)] == [2]
