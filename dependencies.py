from typing import Annotated, Optional

from fastapi import Request, Depends

from models.token import Identity
from services.accounts import AccountService
from services.auth_gate import AuthGate
from services.posts import PostsService
from services.s3 import S3Service


async def get_current_user(request: Request) -> Identity:
    """
    Verify the bearer token from the Authorization header and return its subject
    """
    gate: AuthGate = request.app.state.auth_gate
    return gate.authenticate(request.headers)


async def get_s3_service(request: Request) -> Optional[S3Service]:
    """Get S3 service from app state; None when uploads are not configured"""
    return request.app.state.s3_service


async def get_posts_service(request: Request) -> PostsService:
    """Get posts service from app state"""
    return request.app.state.posts_service


async def get_account_service(request: Request) -> AccountService:
    """Get account service from app state"""
    return request.app.state.account_service


CurrentUser = Annotated[Identity, Depends(get_current_user)]
S3 = Annotated[Optional[S3Service], Depends(get_s3_service)]
Posts = Annotated[PostsService, Depends(get_posts_service)]
Accounts = Annotated[AccountService, Depends(get_account_service)]
