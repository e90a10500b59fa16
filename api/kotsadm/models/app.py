"""Application and support bundle models."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class App(BaseModel):
    """Installed application."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Application ID")
    slug: str = Field(..., description="URL-safe application slug")
    name: str = Field("", description="Display name")
    is_airgap: bool = Field(False, alias="isAirgap")
    created_at: Optional[datetime] = Field(None, alias="createdAt")


class SupportBundle(BaseModel):
    """Collected support bundle, owned by an application."""

    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Support bundle ID")
    slug: str = Field(..., description="Support bundle slug")
    app_id: str = Field(..., alias="appId", description="Owning application ID")
    name: str = Field("", description="Display name")
    status: str = Field("", description="Collection status")
    created_at: Optional[datetime] = Field(None, alias="createdAt")
