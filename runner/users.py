"""Read-only access to the `users` collection of the application database."""
from __future__ import annotations

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

__all__ = ["USERS_COLLECTION", "UserDocument", "UserReader"]

USERS_COLLECTION = "users"

# Never read the password hash back.
_PROJECTION = {"password": 0}


class UserDocument(BaseModel):
    """A stored user as seen by diagnostics (password excluded)."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str = Field(..., alias="_id")
    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None
    is_active: Optional[bool] = Field(default=None, alias="isActive")

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_id(cls, v: Any) -> str:
        return str(v)


class UserReader:
    """Typed read-only queries over a users collection (motor or compatible)."""

    def __init__(self, collection: Any) -> None:
        self._collection = collection

    async def count(self) -> int:
        return int(await self._collection.count_documents({}))

    async def sample(self) -> UserDocument | None:
        doc = await self._collection.find_one({}, projection=_PROJECTION)
        if doc is None:
            return None
        return UserDocument.model_validate(doc)
