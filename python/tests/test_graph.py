"""Tests for the follow graph (service and routes)."""

from uuid import uuid4

import pytest
from sqlalchemy.exc import IntegrityError

from zenvi.db.models import Follow
from zenvi.errors import (
    ApiErrorCode,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    UnauthorizedError,
)
from zenvi.services import graph as graph_service
from tests.factories import create_test_follow, create_test_user
from tests.helpers import auth_headers


class TestFollowUser:
    def test_follow(self, db_session):
        alice = create_test_user(db_session, username="alice")
        bob = create_test_user(db_session, username="bob")

        result = graph_service.follow_user(db_session, alice, bob)

        assert result.user.id == bob
        assert result.user.username == "bob"
        assert db_session.get(Follow, (alice, bob)) is not None

    def test_self_follow_rejected(self, db_session):
        alice = create_test_user(db_session)

        with pytest.raises(InvalidRequestError) as exc_info:
            graph_service.follow_user(db_session, alice, alice)

        assert exc_info.value.code == ApiErrorCode.E_SELF_FOLLOW

    def test_duplicate_follow_conflicts(self, db_session):
        alice = create_test_user(db_session)
        bob = create_test_user(db_session)
        graph_service.follow_user(db_session, alice, bob)

        with pytest.raises(ConflictError) as exc_info:
            graph_service.follow_user(db_session, alice, bob)

        assert exc_info.value.code == ApiErrorCode.E_ALREADY_FOLLOWING
        assert exc_info.value.status_code == 400

    def test_unknown_target(self, db_session):
        alice = create_test_user(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            graph_service.follow_user(db_session, alice, uuid4())

        assert exc_info.value.code == ApiErrorCode.E_USER_NOT_FOUND

    def test_unknown_viewer(self, db_session):
        bob = create_test_user(db_session)

        with pytest.raises(UnauthorizedError):
            graph_service.follow_user(db_session, uuid4(), bob)

    def test_database_rejects_self_follow_row(self, db_session):
        """The check constraint backs up the service rule."""
        alice = create_test_user(db_session)
        db_session.add(Follow(source_user_id=alice, target_user_id=alice))

        with pytest.raises(IntegrityError):
            db_session.flush()
        db_session.rollback()


class TestUnfollowUser:
    def test_unfollow(self, db_session):
        alice = create_test_user(db_session)
        bob = create_test_user(db_session)
        create_test_follow(db_session, alice, bob)

        graph_service.unfollow_user(db_session, alice, bob)

        db_session.expire_all()
        assert db_session.get(Follow, (alice, bob)) is None

    def test_unfollow_when_not_following(self, db_session):
        alice = create_test_user(db_session)
        bob = create_test_user(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            graph_service.unfollow_user(db_session, alice, bob)

        assert exc_info.value.code == ApiErrorCode.E_FOLLOW_NOT_FOUND

    def test_refollow_after_unfollow(self, db_session):
        alice = create_test_user(db_session)
        bob = create_test_user(db_session)
        graph_service.follow_user(db_session, alice, bob)
        graph_service.unfollow_user(db_session, alice, bob)

        result = graph_service.follow_user(db_session, alice, bob)

        assert result.user.id == bob


class TestFollowLists:
    def test_followers_and_following(self, db_session):
        alice = create_test_user(db_session, username="alice")
        bob = create_test_user(db_session, username="bob")
        carol = create_test_user(db_session, username="carol")
        create_test_follow(db_session, bob, alice)
        create_test_follow(db_session, carol, alice)
        create_test_follow(db_session, alice, carol)

        followers = graph_service.list_followers(db_session, alice)
        following = graph_service.list_following(db_session, alice)

        assert {f.user.username for f in followers} == {"bob", "carol"}
        assert [f.user.username for f in following] == ["carol"]

    def test_empty_lists_are_not_errors(self, db_session):
        alice = create_test_user(db_session)

        assert graph_service.list_followers(db_session, alice) == []
        assert graph_service.list_following(db_session, alice) == []

    def test_unknown_user(self, db_session):
        with pytest.raises(NotFoundError):
            graph_service.list_followers(db_session, uuid4())

    def test_mutual(self, db_session):
        alice = create_test_user(db_session)
        bob = create_test_user(db_session)
        create_test_follow(db_session, alice, bob)

        assert graph_service.are_mutual_followers(db_session, alice, bob) is False

        create_test_follow(db_session, bob, alice)

        assert graph_service.are_mutual_followers(db_session, alice, bob) is True
        assert graph_service.are_mutual_followers(db_session, bob, alice) is True


class TestFollowRoutes:
    def test_follow_then_list(self, authenticated_client, db_session, test_user_id):
        bob = create_test_user(db_session, username="bob")
        headers = auth_headers(test_user_id)

        response = authenticated_client.post(f"/users/{bob}/follow", headers=headers)
        assert response.status_code == 201
        assert response.json()["data"]["user"]["id"] == str(bob)

        response = authenticated_client.get(f"/users/{bob}/followers", headers=headers)
        assert response.status_code == 200
        assert [f["user"]["id"] for f in response.json()["data"]] == [str(test_user_id)]

    def test_follow_twice_is_bad_request(self, authenticated_client, db_session, test_user_id):
        bob = create_test_user(db_session)
        headers = auth_headers(test_user_id)
        authenticated_client.post(f"/users/{bob}/follow", headers=headers)

        response = authenticated_client.post(f"/users/{bob}/follow", headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_ALREADY_FOLLOWING"

    def test_self_follow_is_bad_request(self, authenticated_client, test_user_id):
        response = authenticated_client.post(
            f"/users/{test_user_id}/follow", headers=auth_headers(test_user_id)
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_SELF_FOLLOW"

    def test_unfollow(self, authenticated_client, db_session, test_user_id):
        bob = create_test_user(db_session)
        headers = auth_headers(test_user_id)
        authenticated_client.post(f"/users/{bob}/follow", headers=headers)

        response = authenticated_client.delete(f"/users/{bob}/follow", headers=headers)
        assert response.status_code == 204

        response = authenticated_client.delete(f"/users/{bob}/follow", headers=headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_FOLLOW_NOT_FOUND"

    def test_empty_followers_list(self, authenticated_client, test_user_id):
        response = authenticated_client.get(
            f"/users/{test_user_id}/followers", headers=auth_headers(test_user_id)
        )

        assert response.status_code == 200
        assert response.json() == {"data": []}

    def test_mutual_route(self, authenticated_client, db_session, test_user_id):
        headers = auth_headers(test_user_id)
        authenticated_client.get("/me", headers=headers)
        bob = create_test_user(db_session)
        create_test_follow(db_session, bob, test_user_id)
        authenticated_client.post(f"/users/{bob}/follow", headers=headers)

        response = authenticated_client.get(f"/users/{bob}/mutual", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"user_id": str(bob), "mutual": True}
