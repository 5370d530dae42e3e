from typing import Optional
from pydantic import BaseModel, Field
from gamekeys.schema.full_schema import Role


class ProfileIn(BaseModel):
    email: Optional[str] = Field(None, max_length=320)
    display_name: Optional[str] = Field(None, max_length=128)
    preferred_language: Optional[str] = Field(None, pattern="^(en|ge|ru)$")

    model_config = {"extra": "forbid"}


class RoleIn(BaseModel):
    role: Role
