# File: civic_issues/schemas/auth.py

from pydantic import BaseModel, EmailStr, Field
from civic_issues.schemas.common import PHONE_PATTERN

class RegisterIn(BaseModel):
    full_name: str = Field(min_length=2, max_length=100)
    email: EmailStr
    password: str = Field(min_length=6, max_length=512)
    phone_number: str | None = Field(default=None, pattern=PHONE_PATTERN)

class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1, max_length=512)

class GoogleLoginIn(BaseModel):
    id_token: str = Field(min_length=1)
    phone_number: str | None = Field(default=None, pattern=PHONE_PATTERN)
