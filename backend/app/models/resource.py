"""Learning-center resource model."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import JSON
from sqlmodel import Column, Field, SQLModel

RESOURCE_TYPES = ("document", "video", "link")


class Resource(SQLModel, table=True):
    """A document, video or link shown to agents in one or more phases."""

    id: Optional[int] = Field(default=None, primary_key=True)
    title: str
    description: Optional[str] = Field(default=None)
    type: str = Field(default="document")  # document|video|link
    file_url: Optional[str] = Field(default=None)
    phases: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    order: int = Field(default=0)
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
