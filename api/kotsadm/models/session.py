"""Session model consumed by the enforcement layer."""

from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class Session(BaseModel):
    """Authenticated admin console session."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "2Jb8hXcW0nTHqC3fU3yFz9pQ0aL",
                "roles": ["cluster-admin"],
                "hasRBAC": True,
                "issuedAt": "2024-01-15T10:30:00Z",
                "expiresAt": "2024-01-15T22:30:00Z",
            }
        },
    )

    id: str = Field(..., description="Session ID")
    roles: List[str] = Field(default_factory=list, description="Role IDs held")
    has_rbac: bool = Field(
        False,
        alias="hasRBAC",
        description="False for sessions issued before RBAC existed",
    )
    issued_at: Optional[datetime] = Field(None, alias="issuedAt")
    expires_at: Optional[datetime] = Field(None, alias="expiresAt")

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        """Check whether the session has passed its expiry."""
        if self.expires_at is None:
            return False

        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        return now >= expires_at
