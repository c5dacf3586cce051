from fastapi import APIRouter, Depends, Request
from typing import List

from ..controllers.posts import PostController
from ..models.post import Comment, CommentCreate, Like, MessageOut, PostCreate, PostOut
from ..database import POSTS_COLLECTION, USERS_COLLECTION
from ..store import MongoPostStore, MongoUserDirectory
from .auth import get_current_user_id

router = APIRouter(prefix="/posts", tags=["posts"])


def get_controller(request: Request) -> PostController:
    db = request.app.state.db
    return PostController(
        store=MongoPostStore(db[POSTS_COLLECTION]),
        users=MongoUserDirectory(db[USERS_COLLECTION]),
    )


# --- Posts ---
@router.post("", response_model=PostOut)
async def create_post(
    body: PostCreate,
    current_user: str = Depends(get_current_user_id),
    controller: PostController = Depends(get_controller),
):
    return await controller.create_post(current_user, body.text)


@router.get("", response_model=List[PostOut])
async def get_posts(
    current_user: str = Depends(get_current_user_id),
    controller: PostController = Depends(get_controller),
):
    return await controller.list_posts(current_user)


@router.get("/{post_id}", response_model=PostOut)
async def get_post(
    post_id: str,
    current_user: str = Depends(get_current_user_id),
    controller: PostController = Depends(get_controller),
):
    return await controller.get_post(current_user, post_id)


@router.delete("/{post_id}", response_model=MessageOut)
async def delete_post(
    post_id: str,
    current_user: str = Depends(get_current_user_id),
    controller: PostController = Depends(get_controller),
):
    return await controller.delete_post(current_user, post_id)


# --- Like/Unlike Posts ---
@router.put("/like/{post_id}", response_model=List[Like])
async def like_post(
    post_id: str,
    current_user: str = Depends(get_current_user_id),
    controller: PostController = Depends(get_controller),
):
    return await controller.like_post(current_user, post_id)


@router.put("/unlike/{post_id}", response_model=List[Like])
async def unlike_post(
    post_id: str,
    current_user: str = Depends(get_current_user_id),
    controller: PostController = Depends(get_controller),
):
    return await controller.unlike_post(current_user, post_id)


# --- Comments ---
@router.post("/comment/{post_id}", response_model=List[Comment])
async def add_comment(
    post_id: str,
    body: CommentCreate,
    current_user: str = Depends(get_current_user_id),
    controller: PostController = Depends(get_controller),
):
    return await controller.add_comment(current_user, post_id, body.text)


@router.delete("/comment/{post_id}/{comment_id}", response_model=List[Comment])
async def delete_comment(
    post_id: str,
    comment_id: str,
    current_user: str = Depends(get_current_user_id),
    controller: PostController = Depends(get_controller),
):
    return await controller.delete_comment(current_user, post_id, comment_id)
