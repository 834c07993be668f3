import logging
from typing import Any, Dict, List, Optional

import firebase_admin
from firebase_admin import firestore_async
from google.api_core import exceptions as google_exceptions
from google.cloud import firestore
from google.cloud.firestore_v1 import FieldFilter

from models.post import Post
from models.user import NewUser, User
from services.base.store import PostStore, UserRegistry, VersionConflict, normalize_email
from services.errors import DuplicateEmail, PostNotFound, StoreUnavailable

logger = logging.getLogger(__name__)


def _user_document(user: User) -> Dict[str, Any]:
    data = user.model_dump(exclude={"id"})
    data["password_hash"] = user.password_hash
    return data


def _post_document(post: Post, version: int) -> Dict[str, Any]:
    data = post.model_dump(exclude={"id"})
    data["version"] = version
    return data


def _to_post(snapshot) -> Post:
    return Post(id=snapshot.id, **snapshot.to_dict())


class FirestoreDB(UserRegistry, PostStore):
    """
    Firestore-backed user registry and post store.

    Collections:
        users        user profiles, keyed by generated id
        user_emails  one document per normalized email -> {"user_id"}; enforces uniqueness
        posts        post documents with likes map, comments list and a version counter
    """

    def __init__(self, app: firebase_admin.App):
        self.db = firestore_async.client(app)

    def collection(self, name: str):
        return self.db.collection(name)

    async def create_user(self, profile: NewUser, password_hash: str, picture_path: str = "") -> User:
        """Create the user and claim its email in a single transaction"""
        email = normalize_email(profile.email)
        user_ref = self.collection("users").document()
        email_ref = self.collection("user_emails").document(email)
        user = User(
            **profile.model_dump(exclude={"email"}),
            email=email,
            id=user_ref.id,
            password_hash=password_hash,
            picture_path=picture_path,
        )
        transaction = self.db.transaction()

        @firestore.async_transactional
        async def create_in_transaction(transaction):
            snapshot = await email_ref.get(transaction=transaction)
            if snapshot.exists:
                raise DuplicateEmail(f"A user with email {email} already exists")

            transaction.create(user_ref, _user_document(user))
            transaction.create(email_ref, {"user_id": user_ref.id})

        try:
            await create_in_transaction(transaction)
        except google_exceptions.AlreadyExists as e:
            raise DuplicateEmail(f"A user with email {email} already exists") from e
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Firestore error creating user: {e}")
            raise StoreUnavailable("Could not create user") from e

        return user

    async def get_user_by_email(self, email: str) -> Optional[User]:
        try:
            snapshot = await self.collection("user_emails").document(normalize_email(email)).get()
        except google_exceptions.GoogleAPICallError as e:
            raise StoreUnavailable("Could not look up user") from e

        if not snapshot.exists:
            return None
        return await self.get_user(snapshot.to_dict()["user_id"])

    async def get_user(self, user_id: str) -> Optional[User]:
        try:
            snapshot = await self.collection("users").document(user_id).get()
        except google_exceptions.GoogleAPICallError as e:
            raise StoreUnavailable("Could not look up user") from e

        if not snapshot.exists:
            return None
        return User(id=snapshot.id, **snapshot.to_dict())

    async def create_post(self, post: Post) -> str:
        """Create a new post"""
        new_post_ref = self.collection("posts").document()
        try:
            await new_post_ref.set(_post_document(post, version=1))
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Firestore error creating post: {e}")
            raise StoreUnavailable("Could not create post") from e
        return new_post_ref.id

    async def get_post(self, post_id: str) -> Optional[Post]:
        """Get a post by ID"""
        try:
            snapshot = await self.collection("posts").document(post_id).get()
        except google_exceptions.GoogleAPICallError as e:
            raise StoreUnavailable("Could not load post") from e

        if not snapshot.exists:
            return None
        return _to_post(snapshot)

    async def get_all_posts(self) -> List[Post]:
        """Get all posts sorted by creation date descending"""
        query = self.collection("posts").order_by("created_at", direction=firestore.Query.DESCENDING)
        return await self._stream(query)

    async def get_posts_by_author(self, user_id: str) -> List[Post]:
        # sorted here rather than in the query, which would need a composite index
        query = self.collection("posts").where(filter=FieldFilter("user_id", "==", user_id))
        posts = await self._stream(query)
        return sorted(posts, key=lambda p: p.created_at, reverse=True)

    async def replace_post(self, post_id: str, post: Post, expected_version: int) -> Post:
        """Write the post only if nobody else has written it since it was read"""
        post_ref = self.collection("posts").document(post_id)
        transaction = self.db.transaction()

        @firestore.async_transactional
        async def replace_in_transaction(transaction):
            snapshot = await post_ref.get(transaction=transaction)
            if not snapshot.exists:
                raise PostNotFound(f"Post {post_id} not found")

            current_version = snapshot.to_dict().get("version", 0)
            if current_version != expected_version:
                raise VersionConflict(post_id, expected_version, current_version)

            transaction.set(post_ref, _post_document(post, version=expected_version + 1))

        try:
            await replace_in_transaction(transaction)
        except google_exceptions.GoogleAPICallError as e:
            logger.error(f"Firestore error updating post {post_id}: {e}")
            raise StoreUnavailable("Could not update post") from e

        return post.model_copy(update={"id": post_id, "version": expected_version + 1})

    async def _stream(self, query) -> List[Post]:
        posts = []
        try:
            async for doc in query.stream():
                posts.append(_to_post(doc))
        except google_exceptions.GoogleAPICallError as e:
            raise StoreUnavailable("Could not load posts") from e
        return posts
