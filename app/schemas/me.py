from pydantic import BaseModel, Field, field_validator

from app.utils.constants import USERNAME_PATTERN


class UpdateUsernameIn(BaseModel):
    username: str = Field(min_length=8, max_length=50, pattern=USERNAME_PATTERN)

    @field_validator("username", mode="before")
    @classmethod
    def lower_username(cls, v):
        return v.strip().lower() if isinstance(v, str) else v


class UpdateNameIn(BaseModel):
    name: str = Field(min_length=2, max_length=50)


class MeOut(BaseModel):
    username: str | None
    name: str | None
    email: str
    avatar: str | None
