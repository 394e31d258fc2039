from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class AppUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None
    user_type: str | None = None
    nickname: str | None = None

    @classmethod
    def from_auth_user(cls, user: Any) -> AppUser | None:
        """Build from an SDK auth user; profile fields live in ``user_metadata``."""
        if user is None:
            return None
        meta = getattr(user, "user_metadata", None) or {}
        return cls(
            id=str(user.id),
            email=getattr(user, "email", None),
            phone=meta.get("phone"),
            user_type=meta.get("user_type"),
            nickname=meta.get("nickname"),
        )


class StoredFile(BaseModel):
    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str
    bucket_id: str | None = None
    owner: str | None = None
    id: str | None = None
    updated_at: str | None = None
    created_at: str | None = None
    last_accessed_at: str | None = None
    metadata: dict[str, Any] | None = None
    buckets: dict[str, Any] | None = None


class RegistrationResult(BaseModel):
    model_config = ConfigDict(extra="allow")

    code: int
    message: str | None = None
