from datetime import datetime, timedelta, timezone
from typing import List

from pydantic import BaseModel, Field

DIRECT_REFERRER = "Direct"
UNKNOWN = "Unknown"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ClickEvent(BaseModel):
    """One recorded redirect traversal."""

    timestamp: datetime = Field(default_factory=utc_now, description="When the click occurred")
    referrer: str = Field(DIRECT_REFERRER, description="Referer header or 'Direct'")
    location: str = Field(UNKNOWN, description="Best-effort location or 'Unknown'")
    user_agent: str = Field(UNKNOWN, description="Raw user agent or 'Unknown'")


class UrlEntry(BaseModel):
    """
    A shortcode mapping as held by the registry.

    Everything except ``clicks`` is fixed at creation; ``clicks`` only grows.
    """

    shortcode: str
    original_url: str
    created_at: datetime
    expires_at: datetime
    clicks: List[ClickEvent] = Field(default_factory=list)

    @classmethod
    def create(cls, shortcode: str, original_url: str, validity_minutes: int, now: datetime) -> "UrlEntry":
        """Build a fresh entry whose validity window starts at ``now``."""
        return cls(
            shortcode=shortcode,
            original_url=original_url,
            created_at=now,
            expires_at=now + timedelta(minutes=validity_minutes),
        )

    def is_expired(self, now: datetime) -> bool:
        return self.expires_at < now

    @property
    def total_clicks(self) -> int:
        return len(self.clicks)

    def snapshot(self) -> "UrlEntry":
        """Copy with its own click list, safe to hand out of the registry."""
        return self.model_copy(update={"clicks": list(self.clicks)})
