import logging
from contextlib import asynccontextmanager
from typing import Optional

import boto3
import firebase_admin
from botocore.config import Config
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from firebase_admin import credentials
from starlette.middleware.cors import CORSMiddleware
from starlette.responses import JSONResponse

from config import Settings, cors_origins_from_env
from logging_config import configure_logging, get_logging_config
from routes.auth import router as auth_router
from routes.posts import router as posts_router
from services.accounts import AccountService
from services.auth_gate import AuthGate
from services.errors import FeedError, Unauthorized
from services.firestore import FirestoreDB
from services.memory_store import InMemoryStore
from services.passwords import PasswordVault
from services.posts import PostsService
from services.s3 import S3Service
from services.tokens import TokenIssuer

logger = logging.getLogger(__name__)


def build_store(settings: Settings):
    """Create the user registry / post store selected by STORE_BACKEND"""
    if settings.store_backend == "memory":
        logger.warning("Using the in-memory store; data is lost on restart")
        return InMemoryStore()

    # Initialize Firebase Admin SDK
    cred = credentials.Certificate(settings.firebase_credentials)
    firebase_app = firebase_admin.initialize_app(cred)
    return FirestoreDB(firebase_app)


def build_s3_service(settings: Settings) -> Optional[S3Service]:
    if not settings.s3_bucket_name:
        logger.info("S3_BUCKET_NAME not set; image uploads are disabled")
        return None

    # credentials come from the standard AWS environment variables
    s3_client = boto3.client(
        's3',
        region_name=settings.aws_region,
        config=Config(signature_version="s3v4")
    )
    return S3Service(settings.s3_bucket_name, s3_client, settings.image_base_url)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app_settings = settings or Settings.from_env()
        configure_logging(app_settings.log_level)

        # Initialize dependencies
        store = build_store(app_settings)
        tokens = TokenIssuer(
            app_settings.jwt_secret,
            ttl_seconds=app_settings.token_ttl_seconds,
            algorithm=app_settings.jwt_algorithm
        )
        vault = PasswordVault(rounds=app_settings.bcrypt_rounds)

        app.state.settings = app_settings
        app.state.store = store
        app.state.auth_gate = AuthGate(tokens)
        app.state.s3_service = build_s3_service(app_settings)
        app.state.account_service = AccountService(
            store, vault, tokens,
            store_timeout=app_settings.store_timeout_seconds
        )
        app.state.posts_service = PostsService(
            posts=store,
            users=store,
            store_timeout=app_settings.store_timeout_seconds,
            max_attempts=app_settings.max_update_attempts
        )

        yield

    app = FastAPI(lifespan=lifespan)

    # Configure CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins if settings else cors_origins_from_env(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(FeedError)
    async def feed_error_handler(request: Request, exc: FeedError):
        headers = {"WWW-Authenticate": "Bearer"} if isinstance(exc, Unauthorized) else None
        if exc.status_code >= 500:
            logger.error(f"{request.method} {request.url.path} failed: {exc.code}: {exc.message}")
        return JSONResponse(
            status_code=exc.status_code,
            content={"code": exc.code, "message": exc.message},
            headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=400,
            content={"code": "validation_error", "message": "Invalid request", "errors": jsonable_encoder(exc.errors())}
        )

    # Include routers
    app.include_router(auth_router, prefix="/auth", tags=["auth"])
    app.include_router(posts_router, prefix="/posts", tags=["posts"])

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host="0.0.0.0", port=6001, log_config=get_logging_config())
