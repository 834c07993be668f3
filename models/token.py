from pydantic import BaseModel

from models.user import User


class Identity(BaseModel):
    """Subject of a verified bearer token"""
    user_id: str


class LoginRequest(BaseModel):
    email: str
    password: str


class LoginResponse(BaseModel):
    token: str
    user: User
