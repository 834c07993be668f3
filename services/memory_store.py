import asyncio
import uuid
from typing import Dict, Iterable, List, Optional

from models.post import Post
from models.user import NewUser, User
from services.base.store import PostStore, UserRegistry, VersionConflict, normalize_email
from services.errors import DuplicateEmail, PostNotFound


class InMemoryStore(UserRegistry, PostStore):
    """
    Process-local store with the same contract as FirestoreDB.

    Used for local development (STORE_BACKEND=memory) and tests. Each call
    yields to the event loop before touching state, so concurrent callers
    interleave the way they would against a remote store.
    """

    def __init__(self, latency: float = 0.0):
        self.latency = latency
        self._users: Dict[str, User] = {}
        self._user_ids_by_email: Dict[str, str] = {}
        self._posts: Dict[str, Post] = {}

    async def _round_trip(self):
        await asyncio.sleep(self.latency)

    async def create_user(self, profile: NewUser, password_hash: str, picture_path: str = "") -> User:
        await self._round_trip()
        email = normalize_email(profile.email)
        if email in self._user_ids_by_email:
            raise DuplicateEmail(f"A user with email {email} already exists")

        user = User(
            **profile.model_dump(exclude={"email"}),
            email=email,
            id=uuid.uuid4().hex,
            password_hash=password_hash,
            picture_path=picture_path,
        )
        self._users[user.id] = user
        self._user_ids_by_email[email] = user.id
        return user.model_copy(deep=True)

    async def get_user_by_email(self, email: str) -> Optional[User]:
        await self._round_trip()
        user_id = self._user_ids_by_email.get(normalize_email(email))
        if user_id is None:
            return None
        return self._users[user_id].model_copy(deep=True)

    async def get_user(self, user_id: str) -> Optional[User]:
        await self._round_trip()
        user = self._users.get(user_id)
        return user.model_copy(deep=True) if user else None

    def count_users(self) -> int:
        return len(self._users)

    async def create_post(self, post: Post) -> str:
        await self._round_trip()
        post_id = uuid.uuid4().hex
        self._posts[post_id] = post.model_copy(update={"id": post_id, "version": 1}, deep=True)
        return post_id

    async def get_post(self, post_id: str) -> Optional[Post]:
        await self._round_trip()
        post = self._posts.get(post_id)
        return post.model_copy(deep=True) if post else None

    async def get_all_posts(self) -> List[Post]:
        await self._round_trip()
        return self._newest_first(self._posts.values())

    async def get_posts_by_author(self, user_id: str) -> List[Post]:
        await self._round_trip()
        return self._newest_first(p for p in self._posts.values() if p.user_id == user_id)

    async def replace_post(self, post_id: str, post: Post, expected_version: int) -> Post:
        await self._round_trip()
        # no awaits below: the version check and the write happen in one step
        current = self._posts.get(post_id)
        if current is None:
            raise PostNotFound(f"Post {post_id} not found")
        if current.version != expected_version:
            raise VersionConflict(post_id, expected_version, current.version)

        stored = post.model_copy(update={"id": post_id, "version": expected_version + 1}, deep=True)
        self._posts[post_id] = stored
        return stored.model_copy(deep=True)

    @staticmethod
    def _newest_first(posts: Iterable[Post]) -> List[Post]:
        ordered = sorted(posts, key=lambda p: p.created_at, reverse=True)
        return [p.model_copy(deep=True) for p in ordered]
