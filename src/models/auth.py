"""Identity provider models (users and sessions)"""
from typing import Optional, Any
from datetime import datetime
from pydantic import BaseModel, Field


class AuthUser(BaseModel):
    """Signed-in user as the app sees it"""
    id: str
    email: str
    name: Optional[str] = None
    created_at: Optional[datetime] = None

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> "AuthUser":
        """Map a provider user payload (name lives in user_metadata)"""
        metadata = payload.get("user_metadata") or {}
        return cls(
            id=payload["id"],
            email=payload.get("email") or "",
            name=metadata.get("name") or metadata.get("full_name"),
            created_at=payload.get("created_at"),
        )


class Session(BaseModel):
    """Issued session tokens"""
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
    expires_at: Optional[int] = None  # unix seconds
    user: AuthUser

    @classmethod
    def from_provider(cls, payload: dict[str, Any]) -> "Session":
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            token_type=payload.get("token_type", "bearer"),
            expires_at=payload.get("expires_at"),
            user=AuthUser.from_provider(payload["user"]),
        )


class AuthResponse(BaseModel):
    """Result of sign-up / sign-in; session is None while email confirmation is pending"""
    user: Optional[AuthUser] = None
    session: Optional[Session] = None

    @property
    def pending_confirmation(self) -> bool:
        return self.user is not None and self.session is None


class UserMetadata(BaseModel):
    """Profile metadata stored with the identity provider"""
    name: Optional[str] = None
    full_name: Optional[str] = None
    extra: dict[str, Any] = Field(default_factory=dict)

    def to_payload(self) -> dict[str, Any]:
        payload = dict(self.extra)
        payload["name"] = self.name
        payload["full_name"] = self.full_name if self.full_name is not None else self.name
        return payload
