from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from devhub.controllers.posts import PostController
from devhub.errors import ErrorKind, PostError
from devhub.main import create_app
from devhub.models.post import Post
from devhub.models.user import UserOut
from devhub.routes.auth import create_access_token
from devhub.routes.posts import get_controller
from devhub.store import new_id, parse_object_id

ALICE = "64b000000000000000000001"
BOB = "64b000000000000000000002"
GHOST = "64b0000000000000000000ff"


class FakePostStore:
    """In-memory stand-in for MongoPostStore with the same version check on save."""

    def __init__(self):
        self.posts: Dict[str, Post] = {}
        self.fail_with: Optional[Exception] = None
        self._clock = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def _check(self):
        if self.fail_with is not None:
            raise self.fail_with

    async def find_by_id(self, post_id: str) -> Optional[Post]:
        self._check()
        parse_object_id(post_id)
        post = self.posts.get(post_id)
        return post.model_copy(deep=True) if post else None

    async def find_all(self) -> List[Post]:
        self._check()
        posts = sorted(self.posts.values(), key=lambda p: p.date, reverse=True)
        return [p.model_copy(deep=True) for p in posts]

    async def insert(self, post: Post) -> Post:
        self._check()
        # Strictly increasing dates keep ordering deterministic
        self._clock += timedelta(seconds=1)
        stored = post.model_copy(update={"id": new_id(), "version": 0, "date": self._clock}, deep=True)
        self.posts[stored.id] = stored
        return stored.model_copy(deep=True)

    async def save(self, post: Post) -> Post:
        self._check()
        current = self.posts.get(post.id)
        if current is None or current.version != post.version:
            raise PostError(ErrorKind.CONFLICT, "Post was modified concurrently, retry")
        saved = post.model_copy(update={"version": post.version + 1}, deep=True)
        self.posts[post.id] = saved
        return saved.model_copy(deep=True)

    async def delete(self, post_id: str) -> None:
        self._check()
        self.posts.pop(post_id, None)


class FakeUserDirectory:
    def __init__(self, users: List[UserOut]):
        self.users = {u.id: u for u in users}

    async def get(self, user_id: str) -> Optional[UserOut]:
        return self.users.get(user_id)


@pytest.fixture()
def store() -> FakePostStore:
    return FakePostStore()


@pytest.fixture()
def users() -> FakeUserDirectory:
    return FakeUserDirectory([
        UserOut(id=ALICE, name="Alice", avatar="//gravatar/alice"),
        UserOut(id=BOB, name="Bob"),
    ])


@pytest.fixture()
def controller(store, users) -> PostController:
    return PostController(store, users)


@asynccontextmanager
async def _no_db(app):
    yield


@pytest.fixture()
def client(controller):
    app = create_app(lifespan=_no_db)
    app.dependency_overrides[get_controller] = lambda: controller
    return TestClient(app, raise_server_exceptions=False)


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture()
def alice_headers() -> dict:
    return auth_headers(ALICE)


@pytest.fixture()
def bob_headers() -> dict:
    return auth_headers(BOB)
