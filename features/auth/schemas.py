from ninja import Schema
from pydantic import Field


class LoginSchema(Schema):
    email: str
    password: str


class RegisterSchema(Schema):
    email: str = Field(..., max_length=150)
    password: str = Field(..., min_length=8)


class TokenSchema(Schema):
    access: str
    refresh: str
    user_id: int
    email: str


class RefreshSchema(Schema):
    refresh: str


class AuthErrorSchema(Schema):
    status: str
    message: str
    code: int
