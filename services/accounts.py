import logging
from typing import Tuple

from fastapi.concurrency import run_in_threadpool

from models.user import NewUser, User
from services.base.store import UserRegistry, normalize_email
from services.errors import InvalidCredentials, ValidationError
from services.passwords import MAX_PASSWORD_BYTES, PasswordVault
from services.tokens import TokenIssuer
from utils.timeouts import bounded

logger = logging.getLogger(__name__)


class AccountService:
    """Registration and password login"""

    def __init__(
            self,
            users: UserRegistry,
            vault: PasswordVault,
            tokens: TokenIssuer,
            store_timeout: float = 5.0
    ):
        self.users = users
        self.vault = vault
        self.tokens = tokens
        self.store_timeout = store_timeout

    async def email_taken(self, email: str) -> bool:
        return await bounded(self.users.get_user_by_email(email), self.store_timeout) is not None

    def validate_registration(self, profile: NewUser, password: str) -> NewUser:
        """
        Normalize a registration profile and check it along with the password

        Runs before anything is stored or uploaded.

        Returns:
            The profile with trimmed fields and a normalized email

        Raises:
            ValidationError: If a required field is blank or the password is unusable
        """
        profile = profile.model_copy(update={
            "first_name": profile.first_name.strip(),
            "last_name": profile.last_name.strip(),
            "email": normalize_email(profile.email),
            "location": profile.location.strip(),
            "occupation": profile.occupation.strip(),
        })
        if not profile.first_name or not profile.last_name:
            raise ValidationError("First and last name are required")
        if "@" not in profile.email:
            raise ValidationError("A valid email address is required")
        if not password or len(password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be between 1 and {MAX_PASSWORD_BYTES} bytes")
        return profile

    async def register(self, profile: NewUser, password: str, picture_path: str = "") -> User:
        """
        Register a new user

        Raises:
            ValidationError: If a required field is blank or the password is unusable
            DuplicateEmail: If the email is already registered
        """
        profile = self.validate_registration(profile, password)

        # bcrypt is CPU bound; keep it off the event loop
        password_hash = await run_in_threadpool(self.vault.hash, password)
        user = await bounded(
            self.users.create_user(profile, password_hash, picture_path),
            self.store_timeout
        )
        logger.info(f"Registered user {user.id}")
        return user

    async def login(self, email: str, password: str) -> Tuple[str, User]:
        """
        Check credentials and issue a bearer token

        Returns:
            (token, user)

        Raises:
            InvalidCredentials: If the email is unknown or the password is wrong
        """
        user = await bounded(self.users.get_user_by_email(email), self.store_timeout)
        if user is None:
            raise InvalidCredentials("Invalid email or password")

        if not await run_in_threadpool(self.vault.verify, password, user.password_hash):
            logger.info(f"Failed login for user {user.id}")
            raise InvalidCredentials("Invalid email or password")

        return self.tokens.issue(user.id), user
