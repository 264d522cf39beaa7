"""Test utilities for shortlink tests."""

import random
import string
from datetime import datetime
from typing import Any, Dict, Optional

from shortlink.models.link import Link


def random_string(length: int = 10) -> str:
    """Generate a random lowercase alphanumeric string."""
    return ''.join(random.choice(string.ascii_lowercase + string.digits) for _ in range(length))


def random_url() -> str:
    """Generate a random URL for testing."""
    domain = f"{random_string(8)}.com"
    path = random_string(12)
    return f"https://{domain}/{path}"


def create_test_link_data(
    original_url: Optional[str] = None,
    short_code: Optional[str] = None,
    owner_id: str = "owner-1",
    click_count: int = 0,
    created_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Create test data dict for a Link."""
    data = {
        "original_url": original_url or random_url(),
        "short_code": short_code or random_string(6),
        "owner_id": owner_id,
        "click_count": click_count,
    }
    if created_at is not None:
        data["created_at"] = created_at
    return data


async def create_test_link(db, **kwargs) -> Link:
    """Create and commit a test Link so other sessions can see it."""
    link = Link(**create_test_link_data(**kwargs))
    db.add(link)
    await db.commit()
    await db.refresh(link)
    return link


def asgi_get_scope(path: str, host: str = "testserver") -> Dict[str, Any]:
    """ASGI scope for a plain GET, for driving an app without an HTTP client."""
    return {
        "type": "http",
        "asgi": {"version": "3.0"},
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": path,
        "raw_path": path.encode(),
        "root_path": "",
        "query_string": b"",
        "headers": [(b"host", host.encode())],
        "client": ("127.0.0.1", 50000),
        "server": (host, 80),
    }


async def asgi_request_body() -> Dict[str, Any]:
    return {"type": "http.request", "body": b"", "more_body": False}
