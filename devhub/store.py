import logging
from typing import Any, Dict, List, Optional

from bson.errors import InvalidId
from bson.objectid import ObjectId
from pymongo import DESCENDING
from pymongo.errors import PyMongoError

from .errors import ErrorKind, PostError
from .models.post import Comment, Like, Post
from .models.user import UserOut
from .utils.log import (
    EVENT_DB_READ_FAILED,
    EVENT_DB_WRITE_FAILED,
    EVENT_SAVE_CONFLICT,
    log_event,
)

logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(ObjectId())


def parse_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError):
        raise PostError(ErrorKind.INVALID_IDENTIFIER, "Invalid identifier")


def user_ref(user_id: str):
    # Identity Provider ids are usually ObjectIds, but foreign ids are kept verbatim
    if ObjectId.is_valid(user_id):
        return ObjectId(user_id)
    return user_id


def version_filter(version: int):
    # Posts written before versioning have no field; {"version": 0} would never match them
    if version == 0:
        return {"$in": [0, None]}
    return version


# ----------------- DOCUMENT CONVERSION -----------------
def post_to_document(post: Post) -> Dict[str, Any]:
    doc = {
        "user": user_ref(post.user),
        "text": post.text,
        "name": post.name,
        "avatar": post.avatar,
        "likes": [{"_id": ObjectId(like.id), "user": user_ref(like.user)} for like in post.likes],
        "comments": [
            {
                "_id": ObjectId(c.id),
                "user": user_ref(c.user),
                "text": c.text,
                "name": c.name,
                "avatar": c.avatar,
                "date": c.date,
            }
            for c in post.comments
        ],
        "date": post.date,
        "version": post.version,
    }
    if post.id is not None:
        doc["_id"] = ObjectId(post.id)
    return doc


def post_from_document(doc: Dict[str, Any]) -> Post:
    return Post(
        id=str(doc["_id"]),
        user=str(doc["user"]),
        text=doc["text"],
        name=doc.get("name", ""),
        avatar=doc.get("avatar"),
        likes=[Like(id=str(like["_id"]), user=str(like["user"])) for like in doc.get("likes", [])],
        comments=[
            Comment(
                id=str(c["_id"]),
                user=str(c["user"]),
                text=c["text"],
                name=c.get("name", ""),
                avatar=c.get("avatar"),
                date=c["date"],
            )
            for c in doc.get("comments", [])
        ],
        date=doc["date"],
        version=doc.get("version", 0),
    )


# ----------------- POSTS -----------------
class MongoPostStore:
    """Post persistence over a Mongo collection.

    Driver failures never leave this class as pymongo exceptions: they are
    turned into ``PostError`` with an ``ErrorKind`` so callers don't depend
    on the driver.
    """

    def __init__(self, collection):
        self.collection = collection

    async def find_by_id(self, post_id: str) -> Optional[Post]:
        oid = parse_object_id(post_id)
        try:
            doc = await self.collection.find_one({"_id": oid})
        except PyMongoError as e:
            raise self._failed(EVENT_DB_READ_FAILED, "find_by_id", e)
        return post_from_document(doc) if doc else None

    async def find_all(self) -> List[Post]:
        try:
            cursor = self.collection.find().sort("date", DESCENDING)
            docs = await cursor.to_list(length=None)
        except PyMongoError as e:
            raise self._failed(EVENT_DB_READ_FAILED, "find_all", e)
        return [post_from_document(doc) for doc in docs]

    async def insert(self, post: Post) -> Post:
        doc = post_to_document(post.model_copy(update={"id": None, "version": 0}))
        try:
            result = await self.collection.insert_one(doc)
        except PyMongoError as e:
            raise self._failed(EVENT_DB_WRITE_FAILED, "insert", e)
        return post.model_copy(update={"id": str(result.inserted_id), "version": 0})

    async def save(self, post: Post) -> Post:
        """Replace the stored post if nobody saved it since it was read."""
        saved = post.model_copy(update={"version": post.version + 1})
        try:
            result = await self.collection.replace_one(
                {"_id": parse_object_id(post.id), "version": version_filter(post.version)},
                post_to_document(saved),
            )
        except PyMongoError as e:
            raise self._failed(EVENT_DB_WRITE_FAILED, "save", e)
        if result.matched_count == 0:
            log_event(logger, "warning", EVENT_SAVE_CONFLICT, post_id=post.id, version=post.version)
            raise PostError(ErrorKind.CONFLICT, "Post was modified concurrently, retry")
        return saved

    async def delete(self, post_id: str) -> None:
        oid = parse_object_id(post_id)
        try:
            await self.collection.delete_one({"_id": oid})
        except PyMongoError as e:
            raise self._failed(EVENT_DB_WRITE_FAILED, "delete", e)

    @staticmethod
    def _failed(event: str, operation: str, exc: Exception) -> PostError:
        log_event(logger, "error", event, operation=operation, error_category=type(exc).__name__)
        return PostError(ErrorKind.UNEXPECTED, str(exc))


# ----------------- USERS -----------------
class MongoUserDirectory:
    """Read-only view of the Identity Provider's users collection."""

    def __init__(self, collection):
        self.collection = collection

    async def get(self, user_id: str) -> Optional[UserOut]:
        try:
            doc = await self.collection.find_one({"_id": user_ref(user_id)}, {"password": 0})
        except PyMongoError as e:
            log_event(logger, "error", EVENT_DB_READ_FAILED, operation="get_user", error_category=type(e).__name__)
            raise PostError(ErrorKind.UNEXPECTED, str(e))
        if not doc:
            return None
        return UserOut(id=str(doc["_id"]), name=doc["name"], avatar=doc.get("avatar"))
