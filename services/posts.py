import html
import logging
from datetime import datetime
from typing import Callable, List, Optional

import bleach

from models.post import Comment, Post
from models.user import User
from services.base.store import PostStore, UserRegistry, VersionConflict
from services.errors import ConcurrentUpdateConflict, PostNotFound, UserNotFound, ValidationError
from services.tokens import utcnow
from utils.timeouts import bounded

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 5000
MAX_COMMENT_LENGTH = 500


class PostsService:
    """
    Creates posts and applies likes and comments to them.

    Likes and comments are read-modify-write cycles on a shared post document.
    Each cycle writes with a version check and is retried from a fresh read
    when another writer got there first, so concurrent likes and comments are
    never lost.
    """

    def __init__(
            self,
            posts: PostStore,
            users: UserRegistry,
            store_timeout: float = 5.0,
            max_attempts: int = 5,
            clock: Callable[[], datetime] = utcnow
    ):
        self.posts = posts
        self.users = users
        self.store_timeout = store_timeout
        self.max_attempts = max_attempts
        self.clock = clock

    async def create_post(self, author_id: str, description: str, picture_path: Optional[str] = None) -> Post:
        """
        Create a post for an existing user

        Returns:
            The created post, including its new id

        Raises:
            ValidationError: If the description is empty or too long
            UserNotFound: If the author does not exist
        """
        text = (description or "").strip()
        if not text:
            raise ValidationError("Post description must not be empty")
        if len(text) > MAX_DESCRIPTION_LENGTH:
            raise ValidationError(f"Post description must be at most {MAX_DESCRIPTION_LENGTH} characters")

        author = await self.require_user(author_id)
        post = Post(
            user_id=author.id,
            first_name=author.first_name,
            last_name=author.last_name,
            location=author.location,
            user_picture_path=author.picture_path,
            description=text,
            picture_path=picture_path or "",
            likes={},
            comments=[],
            created_at=self.clock(),
        )
        post_id = await bounded(self.posts.create_post(post), self.store_timeout)
        logger.info(f"User {author.id} created post {post_id}")
        return post.model_copy(update={"id": post_id, "version": 1})

    async def toggle_like(self, post_id: str, user_id: str) -> Post:
        """Like the post if the user has not liked it yet, otherwise remove the like"""

        def flip(post: Post):
            if post.is_liked_by(user_id):
                del post.likes[user_id]
            else:
                post.likes[user_id] = True

        return await self._update(post_id, flip)

    async def add_comment(self, post_id: str, user_id: str, text: str) -> Post:
        """
        Append a comment to a post

        Raises:
            ValidationError: If the comment is empty or longer than 500 characters
            UserNotFound: If the commenter does not exist
            PostNotFound: If the post does not exist
        """
        # bleach escapes & < >; store and measure the text the user typed
        comment_text = html.unescape(bleach.clean((text or "").strip(), tags=set(), strip=True)).strip()
        if not comment_text:
            raise ValidationError("Comment must not be empty")
        if len(comment_text) > MAX_COMMENT_LENGTH:
            raise ValidationError(f"Comment must be at most {MAX_COMMENT_LENGTH} characters")

        author = await self.require_user(user_id)
        comment = Comment(
            user_id=author.id,
            name=author.display_name,
            comment=comment_text,
            created_at=self.clock(),
        )

        def append(post: Post):
            post.comments.append(comment)

        return await self._update(post_id, append)

    async def get_feed(self) -> List[Post]:
        return await bounded(self.posts.get_all_posts(), self.store_timeout)

    async def get_by_author(self, user_id: str) -> List[Post]:
        return await bounded(self.posts.get_posts_by_author(user_id), self.store_timeout)

    async def require_user(self, user_id: str) -> User:
        """Look up a user, raising UserNotFound when there is none"""
        user = await bounded(self.users.get_user(user_id), self.store_timeout)
        if user is None:
            raise UserNotFound(f"User {user_id} not found")
        return user

    async def _update(self, post_id: str, change: Callable[[Post], None]) -> Post:
        """Apply change to a fresh copy of the post and write it back with a version check"""
        for attempt in range(1, self.max_attempts + 1):
            post = await bounded(self.posts.get_post(post_id), self.store_timeout)
            if post is None:
                raise PostNotFound(f"Post {post_id} not found")

            change(post)
            try:
                return await bounded(
                    self.posts.replace_post(post_id, post, expected_version=post.version),
                    self.store_timeout
                )
            except VersionConflict as e:
                logger.debug(f"Attempt {attempt} to update post {post_id} conflicted: {e}")

        logger.warning(f"Giving up on post {post_id} after {self.max_attempts} conflicting updates")
        raise ConcurrentUpdateConflict(f"Post {post_id} is being updated concurrently, try again")
