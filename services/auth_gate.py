import logging
from typing import Mapping

from models.token import Identity
from services.errors import InvalidToken, Unauthorized
from services.tokens import TokenIssuer

logger = logging.getLogger(__name__)


class AuthGate:
    """Turns an Authorization header into an authenticated identity"""

    def __init__(self, tokens: TokenIssuer):
        self.tokens = tokens

    def authenticate(self, headers: Mapping[str, str]) -> Identity:
        """
        Verify the bearer token from request headers

        Raises:
            Unauthorized: If the header is missing or not a bearer credential
            InvalidToken: If the token is present but rejected
        """
        authorization = headers.get("Authorization") or headers.get("authorization")
        if not authorization:
            logger.info("Request rejected: no Authorization header")
            raise Unauthorized("Missing authorization header")

        scheme, _, token = authorization.partition(" ")
        token = token.strip()
        if scheme.lower() != "bearer" or not token:
            logger.info("Request rejected: malformed Authorization header")
            raise Unauthorized("Invalid authorization header")

        try:
            subject = self.tokens.verify(token)
        except InvalidToken as e:
            logger.info(f"Request rejected: {e.message}")
            raise

        return Identity(user_id=subject)
