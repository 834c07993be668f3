"""
Application settings.

Values are read once at startup from the environment (a local ``.env`` file is
loaded first) and passed explicitly into the services that need them:

- JWT_SECRET            signing secret for bearer tokens (required)
- JWT_ALGORITHM         default "HS256"
- TOKEN_TTL_SECONDS     token lifetime, default 3600
- BCRYPT_ROUNDS         bcrypt cost factor, default 12
- STORE_BACKEND         "firestore" (default) or "memory"
- FIREBASE_CREDENTIALS  service account file, default "./firebase.json"
- STORE_TIMEOUT_SECONDS upper bound for a single store call, default 5
- MAX_UPDATE_ATTEMPTS   optimistic update attempts per like/comment, default 5
- S3_BUCKET_NAME        bucket for uploaded images; uploads are disabled if unset
- AWS_REGION            default "us-east-2"
- IMAGE_BASE_URL        optional public prefix for stored image keys
- CORS_ORIGINS          comma-separated origins, default "http://localhost:3000"
- LOG_LEVEL             default "INFO"
"""

import os
from dataclasses import dataclass, field
from typing import List, Optional

from dotenv import load_dotenv

STORE_BACKENDS = ("firestore", "memory")


def _split_origins(raw: str) -> List[str]:
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def cors_origins_from_env() -> List[str]:
    """CORS middleware is installed before startup, ahead of the other settings"""
    load_dotenv()
    return _split_origins(os.getenv("CORS_ORIGINS", "http://localhost:3000"))


@dataclass
class Settings:
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    token_ttl_seconds: int = 3600
    bcrypt_rounds: int = 12
    store_backend: str = "firestore"
    firebase_credentials: str = "./firebase.json"
    store_timeout_seconds: float = 5.0
    max_update_attempts: int = 5
    s3_bucket_name: Optional[str] = None
    aws_region: str = "us-east-2"
    image_base_url: Optional[str] = None
    cors_origins: List[str] = field(default_factory=lambda: ["http://localhost:3000"])
    log_level: str = "INFO"

    def __post_init__(self):
        if not self.jwt_secret:
            raise ValueError("JWT_SECRET must be set")
        if self.store_backend not in STORE_BACKENDS:
            raise ValueError(f"STORE_BACKEND must be one of {', '.join(STORE_BACKENDS)}")
        if self.max_update_attempts < 1:
            raise ValueError("MAX_UPDATE_ATTEMPTS must be at least 1")

    @classmethod
    def from_env(cls) -> "Settings":
        load_dotenv()
        return cls(
            jwt_secret=os.getenv("JWT_SECRET", ""),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            token_ttl_seconds=int(os.getenv("TOKEN_TTL_SECONDS", "3600")),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", "12")),
            store_backend=os.getenv("STORE_BACKEND", "firestore").lower(),
            firebase_credentials=os.getenv("FIREBASE_CREDENTIALS", "./firebase.json"),
            store_timeout_seconds=float(os.getenv("STORE_TIMEOUT_SECONDS", "5")),
            max_update_attempts=int(os.getenv("MAX_UPDATE_ATTEMPTS", "5")),
            s3_bucket_name=os.getenv("S3_BUCKET_NAME") or None,
            aws_region=os.getenv("AWS_REGION", "us-east-2"),
            image_base_url=os.getenv("IMAGE_BASE_URL") or None,
            cors_origins=_split_origins(os.getenv("CORS_ORIGINS", "http://localhost:3000")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
