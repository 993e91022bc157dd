from pydantic import BaseModel, EmailStr, Field, field_validator
from pydantic_core import PydanticCustomError

from app.services.passwords import is_strong_password
from app.utils.constants import SETUP_USERNAME_PATTERN


class RegisterIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=8)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    @field_validator("password")
    @classmethod
    def password_is_strong(cls, v: str) -> str:
        if not is_strong_password(v):
            raise PydanticCustomError("password_strength", "password is not strong enough")
        return v


class LoginIn(BaseModel):
    email: EmailStr
    password: str = Field(min_length=1)

    @field_validator("email", mode="before")
    @classmethod
    def normalize_email(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class SetupIn(BaseModel):
    name: str = Field(min_length=2, max_length=100)
    username: str = Field(min_length=6, max_length=50, pattern=SETUP_USERNAME_PATTERN)
