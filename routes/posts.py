from typing import Annotated, List, Optional

from fastapi import APIRouter, File, Form, UploadFile

from dependencies import CurrentUser, Posts, S3
from models.post import CommentRequest, LikeRequest, Post
from services.errors import Forbidden, StoreUnavailable, ValidationError

router = APIRouter()


def _acting_user(current_user, requested_user_id: Optional[str]) -> str:
    """The token subject acts; a userId in the body may only repeat it"""
    if requested_user_id and requested_user_id != current_user.user_id:
        raise Forbidden("Cannot act on behalf of another user")
    return current_user.user_id


@router.get("", response_model=List[Post])
async def get_feed_posts(posts: Posts, current_user: CurrentUser) -> List[Post]:
    """Get all posts, newest first"""
    return await posts.get_feed()


@router.post("", response_model=Post, status_code=201)
async def create_post(
        posts: Posts,
        s3_service: S3,
        current_user: CurrentUser,
        description: Annotated[str, Form()] = "",
        picture: Annotated[Optional[UploadFile], File()] = None,
) -> Post:
    """Create a new post, optionally with an image"""
    author_id = current_user.user_id

    picture_path = None
    if picture is not None and picture.filename:
        if s3_service is None:
            raise StoreUnavailable("Image uploads are not configured")
        # validate the text and the author before paying for an upload
        if not description.strip():
            raise ValidationError("Post description must not be empty")
        await posts.require_user(author_id)
        picture_path = await s3_service.upload_image(
            picture,
            folder=f"posts/{author_id}",
            owner_id=author_id
        )

    return await posts.create_post(author_id, description, picture_path)


@router.get("/{user_id}", response_model=List[Post])
async def get_user_posts(posts: Posts, user_id: str, current_user: CurrentUser) -> List[Post]:
    """Get posts written by a user"""
    return await posts.get_by_author(user_id)


@router.patch("/{post_id}/like", response_model=Post)
async def toggle_like(
        posts: Posts,
        post_id: str,
        current_user: CurrentUser,
        like: Optional[LikeRequest] = None,
) -> Post:
    """Toggle the current user's like on a post"""
    user_id = _acting_user(current_user, like.user_id if like else None)
    return await posts.toggle_like(post_id, user_id)


@router.post("/{post_id}/comment", response_model=Post)
async def add_comment(
        posts: Posts,
        post_id: str,
        comment: CommentRequest,
        current_user: CurrentUser,
) -> Post:
    """Add a comment to a post"""
    user_id = _acting_user(current_user, comment.user_id)
    return await posts.add_comment(post_id, user_id, comment.comment)
