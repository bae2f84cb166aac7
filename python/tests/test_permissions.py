"""Tests for the authorization predicates in zenvi.auth.permissions."""

from dataclasses import dataclass
from uuid import UUID, uuid4

import pytest

from zenvi.auth.permissions import (
    ALLOW,
    Decision,
    Denial,
    can_follow,
    can_like,
    can_modify,
    can_view_conversation,
)
from zenvi.errors import ApiErrorCode, ConflictError, InvalidRequestError
from tests.factories import create_test_follow, create_test_like, create_test_post, create_test_user


@dataclass
class _Participants:
    user1_id: UUID
    user2_id: UUID


class TestCanModify:
    def test_owner_may_modify(self):
        owner = uuid4()
        assert can_modify(owner, owner) is True

    def test_other_user_may_not(self):
        assert can_modify(uuid4(), uuid4()) is False

    def test_missing_ids_deny(self):
        assert can_modify(None, uuid4()) is False
        assert can_modify(uuid4(), None) is False


class TestCanViewConversation:
    def test_both_participants_allowed(self):
        a, b = uuid4(), uuid4()
        conversation = _Participants(a, b)

        assert can_view_conversation(a, conversation) is True
        assert can_view_conversation(b, conversation) is True

    def test_outsider_denied(self):
        assert can_view_conversation(uuid4(), _Participants(uuid4(), uuid4())) is False

    def test_anonymous_denied(self):
        assert can_view_conversation(None, _Participants(uuid4(), uuid4())) is False


class TestDecision:
    def test_allow_has_no_error(self):
        assert ALLOW.allowed is True
        with pytest.raises(ValueError):
            ALLOW.to_error()

    def test_denial_maps_to_error_type(self):
        decision = Decision.deny(Denial.CONFLICT, ApiErrorCode.E_ALREADY_LIKED, "Post already liked")
        error = decision.to_error()

        assert isinstance(error, ConflictError)
        assert error.code == ApiErrorCode.E_ALREADY_LIKED
        assert error.message == "Post already liked"


class TestCanFollow:
    def test_self_follow_denied(self, db_session):
        user_id = create_test_user(db_session)
        decision = can_follow(db_session, user_id, user_id)

        assert decision.allowed is False
        assert decision.code == ApiErrorCode.E_SELF_FOLLOW
        assert isinstance(decision.to_error(), InvalidRequestError)

    def test_duplicate_follow_denied(self, db_session):
        a = create_test_user(db_session)
        b = create_test_user(db_session)
        create_test_follow(db_session, a, b)

        decision = can_follow(db_session, a, b)

        assert decision.allowed is False
        assert decision.denial == Denial.CONFLICT
        assert decision.code == ApiErrorCode.E_ALREADY_FOLLOWING

    def test_reverse_direction_allowed(self, db_session):
        a = create_test_user(db_session)
        b = create_test_user(db_session)
        create_test_follow(db_session, a, b)

        assert can_follow(db_session, b, a).allowed is True


class TestCanLike:
    def test_first_like_allowed(self, db_session):
        user_id = create_test_user(db_session)
        post_id = create_test_post(db_session, user_id)

        assert can_like(db_session, user_id, post_id).allowed is True

    def test_second_like_denied(self, db_session):
        user_id = create_test_user(db_session)
        post_id = create_test_post(db_session, user_id)
        create_test_like(db_session, post_id, user_id)

        decision = can_like(db_session, user_id, post_id)

        assert decision.allowed is False
        assert decision.code == ApiErrorCode.E_ALREADY_LIKED
