from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, List, Optional
from datetime import datetime


class CamelModel(BaseModel):
    """Wire format uses camelCase (shortLink, totalClicks, ...)"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class URLCreate(BaseModel):
    """
    One shorten request.

    Fields are typed loosely on purpose: the service validator produces the
    per-field reasons (400), instead of a generic 422 from request parsing.
    """

    url: Any = Field(None, description="The original URL to be shortened")
    validity: Any = Field(None, description="Validity window in minutes (default 30)")
    shortcode: Any = Field(None, description="Optional custom shortcode (4-10 alphanumeric)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"url": "https://example.com/a", "validity": 30, "shortcode": "abcd"}
        }
    )


class URLCreateResponse(CamelModel):
    short_link: str
    expiry: str


class ErrorDetail(BaseModel):
    error: str
    message: str
    fields: Optional[dict] = None


class BatchItemResponse(CamelModel):
    index: int
    ok: bool
    short_link: Optional[str] = None
    expiry: Optional[str] = None
    error: Optional[ErrorDetail] = None


class BatchCreateResponse(BaseModel):
    results: List[BatchItemResponse]


class ClickResponse(CamelModel):
    timestamp: datetime
    referrer: str
    location: str
    user_agent: str


class URLStats(CamelModel):
    shortcode: str
    original_url: str
    created_at: datetime
    expires_at: datetime
    total_clicks: int
    clicks: List[ClickResponse]