from typing import Annotated, Optional

from fastapi import APIRouter, File, Form, UploadFile

from dependencies import Accounts, S3
from models.token import LoginRequest, LoginResponse
from models.user import NewUser
from services.errors import DuplicateEmail, StoreUnavailable

router = APIRouter()


@router.post("/register", status_code=201)
async def register(
        accounts: Accounts,
        s3_service: S3,
        first_name: Annotated[str, Form(alias="firstName", min_length=1, max_length=50)],
        last_name: Annotated[str, Form(alias="lastName", min_length=1, max_length=50)],
        email: Annotated[str, Form(min_length=3, max_length=254)],
        password: Annotated[str, Form(min_length=1)],
        location: Annotated[str, Form()] = "",
        occupation: Annotated[str, Form()] = "",
        picture: Annotated[Optional[UploadFile], File()] = None,
) -> dict:
    """Register a new user with an optional profile picture"""
    profile = accounts.validate_registration(
        NewUser(
            first_name=first_name,
            last_name=last_name,
            email=email,
            location=location,
            occupation=occupation,
        ),
        password
    )

    # fail before uploading anything; the store still enforces uniqueness
    if await accounts.email_taken(profile.email):
        raise DuplicateEmail("A user with this email already exists")

    picture_path = ""
    if picture is not None and picture.filename:
        if s3_service is None:
            raise StoreUnavailable("Image uploads are not configured")
        picture_path = await s3_service.upload_image(picture, folder="users")

    user = await accounts.register(profile, password, picture_path)
    return {"message": "User registered successfully!", "user": user.model_dump(by_alias=True, mode="json")}


@router.post("/login", response_model=LoginResponse)
async def login(accounts: Accounts, credentials: LoginRequest) -> LoginResponse:
    token, user = await accounts.login(credentials.email, credentials.password)
    return LoginResponse(token=token, user=user)
