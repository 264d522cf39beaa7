"""API request and response schemas.

This module contains Pydantic models for API request validation
and response serialization.
"""

import uuid
from datetime import datetime
from typing import List

from pydantic import BaseModel, ConfigDict, Field


class LinkCreateRequest(BaseModel):
    """Request schema for creating a short link.

    Both fields stay plain strings: blank values and a missing scheme are
    judged by the allocator, which answers with its own 400 errors.
    """
    url: str
    owner_id: str = Field(..., max_length=255)


class LinkResponse(BaseModel):
    """Response schema for link information."""
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    owner_id: str
    short_code: str
    short_url: str  # Full URL including base domain
    original_url: str
    click_count: int
    created_at: datetime


class DashboardStats(BaseModel):
    total_links: int
    total_clicks: int
    links_last_7_days: int


class DashboardResponse(BaseModel):
    """Response schema for an owner's dashboard."""
    stats: DashboardStats
    links: List[LinkResponse]


class ErrorResponse(BaseModel):
    """Response schema for errors."""
    error: str
