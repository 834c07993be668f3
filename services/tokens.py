import logging
from datetime import datetime, timedelta, timezone
from typing import Callable

import jwt

from services.errors import InvalidToken

logger = logging.getLogger(__name__)

REQUIRED_CLAIMS = ["sub", "iat", "exp"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class TokenIssuer:
    """
    Mints and verifies signed bearer tokens.

    Tokens are stateless: validity depends only on the signature, the claims
    and the current time. Changing the secret invalidates every outstanding
    token.
    """

    def __init__(
            self,
            secret: str,
            ttl_seconds: int = 3600,
            algorithm: str = "HS256",
            clock: Callable[[], datetime] = utcnow
    ):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.ttl = timedelta(seconds=ttl_seconds)
        self.algorithm = algorithm
        self.clock = clock

    def issue(self, subject_id: str) -> str:
        issued_at = self.clock()
        claims = {
            "sub": subject_id,
            "iat": int(issued_at.timestamp()),
            "exp": int((issued_at + self.ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    def verify(self, token: str) -> str:
        """
        Verify a token and return its subject

        Raises:
            InvalidToken: If the token is malformed, badly signed or expired
        """
        try:
            # expiry is checked below against the injected clock
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={
                    "verify_signature": True,
                    "verify_exp": False,
                    "verify_iat": False,
                    "require": REQUIRED_CLAIMS,
                }
            )
        except jwt.InvalidTokenError as e:
            raise InvalidToken(f"Token rejected: {e.__class__.__name__}") from e

        subject = claims.get("sub")
        if not isinstance(subject, str) or not subject:
            raise InvalidToken("Token has no subject")

        if self.clock().timestamp() > claims["exp"]:
            raise InvalidToken("Token expired")

        return subject
