import logging
from typing import List

from ..errors import ErrorKind, PostError, field_error
from ..models.post import Comment, Like, Post
from ..models.user import UserOut
from ..store import new_id
from ..utils.log import (
    EVENT_COMMENT_ADDED,
    EVENT_COMMENT_DELETED,
    EVENT_POST_CREATED,
    EVENT_POST_DELETED,
    EVENT_POST_LIKED,
    EVENT_POST_UNLIKED,
    log_event,
)

logger = logging.getLogger(__name__)

POST_NOT_FOUND = "Post not found"
NOT_AUTHORIZED = "User not authorized"


def same_user(ref, caller_id: str) -> bool:
    # Stored refs may be ObjectIds, callers are always strings
    return str(ref) == str(caller_id)


class PostController:
    """Post operations on behalf of an authenticated caller.

    Holds no state of its own: ``store`` persists posts and ``users`` resolves
    caller ids to the name/avatar copied onto new posts and comments.
    Every method reads the whole post, changes it in memory and saves it
    back; the store rejects the save if another request saved first.
    """

    def __init__(self, store, users):
        self.store = store
        self.users = users

    # --- Posts ---
    async def create_post(self, caller_id: str, text: str) -> Post:
        _require_text(text)
        user = await self._resolve_user(caller_id)
        post = Post(user=caller_id, text=text, name=user.name, avatar=user.avatar)
        post = await self.store.insert(post)
        log_event(logger, "info", EVENT_POST_CREATED, post_id=post.id, user=caller_id, text_len=len(text))
        return post

    async def list_posts(self, caller_id: str) -> List[Post]:
        return await self.store.find_all()

    async def get_post(self, caller_id: str, post_id: str) -> Post:
        return await self._load(post_id)

    async def delete_post(self, caller_id: str, post_id: str) -> dict:
        post = await self._load(post_id)
        if not same_user(post.user, caller_id):
            raise PostError(ErrorKind.AUTHORIZATION, NOT_AUTHORIZED)
        await self.store.delete(post.id)
        log_event(logger, "info", EVENT_POST_DELETED, post_id=post.id, user=caller_id)
        return {"msg": "Post removed"}

    # --- Likes ---
    async def like_post(self, caller_id: str, post_id: str) -> List[Like]:
        post = await self._load(post_id)
        if any(same_user(like.user, caller_id) for like in post.likes):
            raise PostError(ErrorKind.VALIDATION, "Post already liked")
        post.likes.insert(0, Like(id=new_id(), user=caller_id))
        post = await self.store.save(post)
        log_event(logger, "info", EVENT_POST_LIKED, post_id=post.id, user=caller_id)
        return post.likes

    async def unlike_post(self, caller_id: str, post_id: str) -> List[Like]:
        post = await self._load(post_id)
        index = _index_of(post.likes, lambda like: same_user(like.user, caller_id))
        if index is None:
            raise PostError(ErrorKind.VALIDATION, "Post has not yet been liked")
        del post.likes[index]
        post = await self.store.save(post)
        log_event(logger, "info", EVENT_POST_UNLIKED, post_id=post.id, user=caller_id)
        return post.likes

    # --- Comments ---
    async def add_comment(self, caller_id: str, post_id: str, text: str) -> List[Comment]:
        _require_text(text)
        user = await self._resolve_user(caller_id)
        post = await self._load(post_id)
        comment = Comment(id=new_id(), user=caller_id, text=text, name=user.name, avatar=user.avatar)
        post.comments.insert(0, comment)
        post = await self.store.save(post)
        log_event(logger, "info", EVENT_COMMENT_ADDED, post_id=post.id, comment_id=comment.id, text_len=len(text))
        return post.comments

    async def delete_comment(self, caller_id: str, post_id: str, comment_id: str) -> List[Comment]:
        post = await self._load(post_id)
        index = _index_of(post.comments, lambda c: c.id == comment_id)
        if index is None:
            raise PostError(ErrorKind.NOT_FOUND, "Comment does not exist")
        if not same_user(post.comments[index].user, caller_id):
            raise PostError(ErrorKind.AUTHORIZATION, NOT_AUTHORIZED)
        del post.comments[index]
        post = await self.store.save(post)
        log_event(logger, "info", EVENT_COMMENT_DELETED, post_id=post.id, comment_id=comment_id)
        return post.comments

    # --- Helpers ---
    async def _load(self, post_id: str) -> Post:
        try:
            post = await self.store.find_by_id(post_id)
        except PostError as e:
            if e.kind is ErrorKind.INVALID_IDENTIFIER:
                raise PostError(ErrorKind.NOT_FOUND, POST_NOT_FOUND)
            raise
        if post is None:
            raise PostError(ErrorKind.NOT_FOUND, POST_NOT_FOUND)
        return post

    async def _resolve_user(self, caller_id: str) -> UserOut:
        user = await self.users.get(caller_id)
        if user is None:
            raise PostError(ErrorKind.AUTHORIZATION, "User not found")
        return user


def _require_text(text: str) -> None:
    if not text:
        raise PostError(ErrorKind.VALIDATION, "Text is required", errors=[field_error("text", "Text is required")])


def _index_of(items, predicate):
    for i, item in enumerate(items):
        if predicate(item):
            return i
    return None
