"""User schemas."""
from pydantic import BaseModel


class UserResponse(BaseModel):
    id: str
    name: str
    email: str
    avatar_url: str | None = None

    model_config = {"from_attributes": True}
