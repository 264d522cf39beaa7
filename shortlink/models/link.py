"""Link data models.

This module defines the Link model storing the mapping between a short code
and the original URL, together with the owner and the visit counter.
"""
import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import DateTime, Index
from sqlmodel import Field, SQLModel


class LinkBase(SQLModel):
    """Base model for link data."""

    owner_id: str = Field(
        max_length=255,
        nullable=False,
        description="Identity of the user who created the link"
    )
    short_code: str = Field(
        max_length=20,
        unique=True,
        description="Unique lowercase alphanumeric code used in the short URL"
    )
    original_url: str = Field(
        description="The absolute URL to redirect to"
    )


class Link(LinkBase, table=True):
    """
    Link model for storing shortened URLs in the database.

    Rows are inserted once by the allocator and never edited afterwards,
    except for ``click_count`` which only the visit counter changes.
    """

    __tablename__ = "links"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    click_count: int = Field(
        default=0,
        ge=0,
        description="Number of recorded visits"
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_type=DateTime(timezone=True),
        description="Timestamp when this link was created"
    )

    __table_args__ = (
        Index("ix_links_owner_id", "owner_id"),
        Index("ix_links_created_at", "created_at"),
    )


class LinkCreate(LinkBase):
    """Schema for inserting a new link."""
    click_count: int = 0

