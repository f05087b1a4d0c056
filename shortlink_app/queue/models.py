"""
Data models for queue messages.
"""

from typing import Optional

from pydantic import BaseModel, Field

from shortlink_app.models.url import ClickEvent


class ClickMessage(BaseModel):
    """
    Envelope for a click published by the redirect endpoint.

    The worker appends ``click`` to the entry named by ``short_code``.
    """

    short_code: str = Field(..., description="The short code that was accessed")
    click: ClickEvent = Field(..., description="Click metadata captured at redirect time")

    # Set by backends that need acknowledgement (Redis Streams)
    message_id: Optional[str] = Field(None, exclude=True)

    model_config = {
        "json_schema_extra": {
            "example": {
                "short_code": "abcd",
                "click": {
                    "timestamp": "2025-10-29T10:30:00+00:00",
                    "referrer": "https://twitter.com",
                    "location": "US",
                    "user_agent": "Mozilla/5.0 (Windows NT 10.0; Win64; x64) Chrome/120.0",
                },
            }
        }
    }
