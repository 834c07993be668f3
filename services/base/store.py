from abc import ABC, abstractmethod
from typing import List, Optional

from models.post import Post
from models.user import NewUser, User


class VersionConflict(Exception):
    """The stored post changed since it was read"""

    def __init__(self, post_id: str, expected_version: int, actual_version: int):
        super().__init__(
            f"Post {post_id} is at version {actual_version}, expected {expected_version}"
        )
        self.post_id = post_id
        self.expected_version = expected_version
        self.actual_version = actual_version


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserRegistry(ABC):
    """Persistence boundary for user records"""

    @abstractmethod
    async def create_user(self, profile: NewUser, password_hash: str, picture_path: str = "") -> User:
        """Persist a new user

        Raises:
            DuplicateEmail: If a user with the same email already exists
        """

    @abstractmethod
    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Look up a user by (normalized) email"""

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        """Look up a user by id"""


class PostStore(ABC):
    """Persistence boundary for post documents

    Every read returns a private copy; callers may mutate it freely and
    write it back with replace_post().
    """

    @abstractmethod
    async def create_post(self, post: Post) -> str:
        """Persist a new post and return its id"""

    @abstractmethod
    async def get_post(self, post_id: str) -> Optional[Post]:
        """Look up a post by id"""

    @abstractmethod
    async def get_all_posts(self) -> List[Post]:
        """All posts, newest first"""

    @abstractmethod
    async def get_posts_by_author(self, user_id: str) -> List[Post]:
        """Posts written by a user, newest first"""

    @abstractmethod
    async def replace_post(self, post_id: str, post: Post, expected_version: int) -> Post:
        """Overwrite a post if its stored version still equals expected_version

        Returns:
            The stored post, at version expected_version + 1

        Raises:
            VersionConflict: If the post was written by someone else meanwhile
            PostNotFound: If the post does not exist
        """
