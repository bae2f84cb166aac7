"""Tests for likes and the denormalized like counter.

The counter must always equal the number of Like rows after every committed
mutation; reconcile_like_counts repairs any drift.
"""

import os
import threading
from collections.abc import Generator
from dataclasses import dataclass, field
from uuid import UUID, uuid4

import pytest
from sqlalchemy import delete, select
from sqlalchemy.orm import Session, sessionmaker

from zenvi.db.engine import create_db_engine
from zenvi.db.models import Base, Like, Post, User
from zenvi.db.session import create_session_factory
from zenvi.errors import ApiErrorCode, ConflictError, NotFoundError, UnauthorizedError
from zenvi.services import likes as likes_service
from tests.factories import (
    count_test_likes,
    create_test_like,
    create_test_post,
    create_test_user,
)
from tests.helpers import auth_headers


def _stored_and_actual(db_session, post_id):
    db_session.expire_all()
    return db_session.get(Post, post_id).like_count, count_test_likes(db_session, post_id)


class TestToggleLike:
    def test_toggle_on_then_off(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)

        first = likes_service.toggle_like(db_session, fan, post_id)
        assert first.liked is True
        assert first.like_count == 1
        assert _stored_and_actual(db_session, post_id) == (1, 1)

        second = likes_service.toggle_like(db_session, fan, post_id)
        assert second.liked is False
        assert second.like_count == 0
        assert _stored_and_actual(db_session, post_id) == (0, 0)

    def test_counter_tracks_rows_across_many_users(self, db_session):
        owner = create_test_user(db_session)
        fans = [create_test_user(db_session) for _ in range(5)]
        post_id = create_test_post(db_session, owner)

        for fan in fans:
            likes_service.toggle_like(db_session, fan, post_id)
        likes_service.toggle_like(db_session, fans[0], post_id)
        likes_service.toggle_like(db_session, fans[3], post_id)

        assert _stored_and_actual(db_session, post_id) == (3, 3)

    def test_missing_post(self, db_session):
        fan = create_test_user(db_session)

        with pytest.raises(NotFoundError) as exc_info:
            likes_service.toggle_like(db_session, fan, uuid4())

        assert exc_info.value.code == ApiErrorCode.E_POST_NOT_FOUND

    def test_unknown_viewer(self, db_session):
        owner = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)

        with pytest.raises(UnauthorizedError):
            likes_service.toggle_like(db_session, uuid4(), post_id)


class TestLikeAndUnlike:
    def test_like(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)

        result = likes_service.like_post(db_session, fan, post_id)

        assert result.liked is True
        assert result.like_count == 1

    def test_like_twice_conflicts_and_count_unchanged(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)
        likes_service.like_post(db_session, fan, post_id)

        with pytest.raises(ConflictError) as exc_info:
            likes_service.like_post(db_session, fan, post_id)

        assert exc_info.value.code == ApiErrorCode.E_ALREADY_LIKED
        assert _stored_and_actual(db_session, post_id) == (1, 1)

    def test_unlike(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)
        likes_service.like_post(db_session, fan, post_id)

        result = likes_service.unlike_post(db_session, fan, post_id)

        assert result.liked is False
        assert result.like_count == 0

    def test_unlike_without_like(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)

        with pytest.raises(NotFoundError) as exc_info:
            likes_service.unlike_post(db_session, fan, post_id)

        assert exc_info.value.code == ApiErrorCode.E_LIKE_NOT_FOUND
        assert _stored_and_actual(db_session, post_id) == (0, 0)

    def test_liked_post_ids(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        liked = create_test_post(db_session, owner)
        create_test_post(db_session, owner)
        likes_service.like_post(db_session, fan, liked)

        assert likes_service.get_liked_post_ids(db_session, fan) == {liked}


class TestReconcileLikeCounts:
    def test_no_drift(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)
        create_test_like(db_session, post_id, fan)

        assert likes_service.reconcile_like_counts(db_session) == 0

    def test_repairs_drift(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        undercounted = create_test_post(db_session, owner)
        overcounted = create_test_post(db_session, owner, like_count=4)
        create_test_like(db_session, undercounted, fan, bump_count=False)
        create_test_like(db_session, overcounted, fan, bump_count=False)

        corrected = likes_service.reconcile_like_counts(db_session)

        assert corrected == 2
        assert _stored_and_actual(db_session, undercounted) == (1, 1)
        assert _stored_and_actual(db_session, overcounted) == (1, 1)

    def test_post_without_likes_reset_to_zero(self, db_session):
        owner = create_test_user(db_session)
        post_id = create_test_post(db_session, owner, like_count=7)

        assert likes_service.reconcile_like_counts(db_session) == 1
        assert _stored_and_actual(db_session, post_id) == (0, 0)


class TestLikeCascade:
    def test_like_rows_removed_with_post(self, db_session):
        owner = create_test_user(db_session)
        fan = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)
        likes_service.like_post(db_session, fan, post_id)

        db_session.delete(db_session.get(Post, post_id))
        db_session.commit()

        assert db_session.scalars(select(Like).where(Like.user_id == fan)).all() == []


class TestLikeRoutes:
    def test_toggle_route(self, authenticated_client, db_session, test_user_id):
        owner = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)
        headers = auth_headers(test_user_id)

        response = authenticated_client.post(f"/posts/{post_id}/like/toggle", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"] == {
            "post_id": str(post_id),
            "liked": True,
            "like_count": 1,
        }

        response = authenticated_client.get(f"/posts/{post_id}", headers=headers)
        assert response.json()["data"]["like_count"] == 1

    def test_like_twice_route(self, authenticated_client, db_session, test_user_id):
        owner = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)
        headers = auth_headers(test_user_id)
        assert authenticated_client.put(f"/posts/{post_id}/like", headers=headers).status_code == 201

        response = authenticated_client.put(f"/posts/{post_id}/like", headers=headers)

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "E_ALREADY_LIKED"

    def test_unlike_route(self, authenticated_client, db_session, test_user_id):
        owner = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)
        headers = auth_headers(test_user_id)
        authenticated_client.put(f"/posts/{post_id}/like", headers=headers)

        assert authenticated_client.delete(f"/posts/{post_id}/like", headers=headers).status_code == 204

        response = authenticated_client.delete(f"/posts/{post_id}/like", headers=headers)
        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_LIKE_NOT_FOUND"

    def test_liked_route(self, authenticated_client, db_session, test_user_id):
        owner = create_test_user(db_session)
        post_id = create_test_post(db_session, owner)
        headers = auth_headers(test_user_id)
        authenticated_client.put(f"/posts/{post_id}/like", headers=headers)

        response = authenticated_client.get("/posts/liked", headers=headers)

        assert response.status_code == 200
        assert response.json()["data"] == {"post_ids": [str(post_id)]}

    def test_like_missing_post_route(self, authenticated_client, test_user_id):
        response = authenticated_client.put(f"/posts/{uuid4()}/like", headers=auth_headers(test_user_id))

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "E_POST_NOT_FOUND"


POSTGRES_URL = os.environ.get("DATABASE_URL", "")

requires_postgres = pytest.mark.skipif(
    not POSTGRES_URL.startswith("postgresql"),
    reason="row locking needs PostgreSQL; set DATABASE_URL=postgresql+psycopg://...",
)


@dataclass
class _PostgresDatabase:
    factory: sessionmaker[Session]
    post_ids: list[UUID] = field(default_factory=list)
    user_ids: list[UUID] = field(default_factory=list)


@pytest.fixture
def postgres_db() -> Generator[_PostgresDatabase, None, None]:
    """Sessions on a real PostgreSQL database; registered rows are deleted afterwards."""
    engine = create_db_engine(POSTGRES_URL)
    Base.metadata.create_all(engine)
    db = _PostgresDatabase(factory=create_session_factory(engine))

    yield db

    with db.factory() as s:
        s.execute(delete(Like).where(Like.post_id.in_(db.post_ids)))
        s.execute(delete(Post).where(Post.id.in_(db.post_ids)))
        s.execute(delete(User).where(User.id.in_(db.user_ids)))
        s.commit()
    engine.dispose()


def _run_concurrently(factory, action, viewer_ids, post_id) -> list[Exception]:
    """Run action(session, viewer_id, post_id) in one thread per viewer, each
    with its own session, all released at once."""
    errors: list[Exception] = []
    barrier = threading.Barrier(len(viewer_ids))

    def worker(viewer_id):
        try:
            barrier.wait(timeout=5)
            with factory() as s:
                action(s, viewer_id, post_id)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=worker, args=(v,), daemon=True) for v in viewer_ids]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=10)
    return errors


@requires_postgres
class TestConcurrentLikes:
    """like_count must equal the Like rows when mutations race on one post."""

    FANS = 8

    def _seed(self, db):
        with db.factory() as s:
            owner = create_test_user(s)
            fans = [create_test_user(s) for _ in range(self.FANS)]
            post_id = create_test_post(s, owner)
        db.user_ids.extend([owner, *fans])
        db.post_ids.append(post_id)
        return fans, post_id

    def _stored_and_actual(self, db, post_id):
        with db.factory() as s:
            return s.get(Post, post_id).like_count, count_test_likes(s, post_id)

    def test_concurrent_likes_from_distinct_users(self, postgres_db):
        fans, post_id = self._seed(postgres_db)

        errors = _run_concurrently(postgres_db.factory, likes_service.like_post, fans, post_id)

        assert errors == []
        assert self._stored_and_actual(postgres_db, post_id) == (self.FANS, self.FANS)

    def test_concurrent_double_toggles_cancel_out(self, postgres_db):
        fans, post_id = self._seed(postgres_db)

        # Each fan toggles twice at the same time; the row lock serializes them
        errors = _run_concurrently(
            postgres_db.factory, likes_service.toggle_like, fans + fans, post_id
        )

        assert errors == []
        assert self._stored_and_actual(postgres_db, post_id) == (0, 0)

    def test_concurrent_unlikes(self, postgres_db):
        fans, post_id = self._seed(postgres_db)
        with postgres_db.factory() as s:
            for fan in fans:
                create_test_like(s, post_id, fan)

        errors = _run_concurrently(postgres_db.factory, likes_service.unlike_post, fans, post_id)

        assert errors == []
        assert self._stored_and_actual(postgres_db, post_id) == (0, 0)
