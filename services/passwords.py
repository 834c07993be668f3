import bcrypt

from services.errors import DataIntegrity, ValidationError

# bcrypt only looks at the first 72 bytes of a password
MAX_PASSWORD_BYTES = 72


class PasswordVault:
    def __init__(self, rounds: int = 12):
        """
        Salted one-way hashing of user passwords

        Args:
            rounds: bcrypt cost factor (4-31)
        """
        self.rounds = rounds

    def hash(self, plaintext: str) -> str:
        """
        Hash a password with a fresh random salt

        Returns:
            The bcrypt digest, salt included

        Raises:
            ValidationError: If the password is empty or longer than 72 bytes
        """
        secret = plaintext.encode("utf-8")
        if not secret:
            raise ValidationError("Password must not be empty")
        if len(secret) > MAX_PASSWORD_BYTES:
            raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes")

        return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=self.rounds)).decode("utf-8")

    def verify(self, plaintext: str, digest: str) -> bool:
        """
        Check a password against a stored digest

        Raises:
            DataIntegrity: If the stored digest is not a bcrypt hash
        """
        secret = plaintext.encode("utf-8")
        if not secret or len(secret) > MAX_PASSWORD_BYTES:
            return False

        try:
            return bcrypt.checkpw(secret, digest.encode("utf-8"))
        except ValueError as e:
            raise DataIntegrity("Stored password digest is malformed") from e
