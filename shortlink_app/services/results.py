"""
Result values returned by the service use cases.

Expected failures (bad input, taken or missing codes) come back as a
ServiceError value instead of an exception; callers branch with
``isinstance(result, ServiceError)``.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Union

from shortlink_app.models.url import ClickEvent


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    EXPIRED = "expired"
    CAPACITY_EXHAUSTED = "capacity_exhausted"


@dataclass(frozen=True)
class ServiceError:
    kind: ErrorKind
    reason: str
    fields: Dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict:
        body = {"error": self.kind.value, "message": self.reason}
        if self.fields:
            body["fields"] = dict(self.fields)
        return body


@dataclass(frozen=True)
class CreatedLink:
    shortcode: str
    short_link: str
    expiry: str  # ISO-8601


@dataclass(frozen=True)
class UrlStatistics:
    shortcode: str
    original_url: str
    created_at: datetime
    expires_at: datetime
    total_clicks: int
    clicks: List[ClickEvent]


CreateResult = Union[CreatedLink, ServiceError]
RedirectResult = Union[str, ServiceError]
StatisticsResult = Union[UrlStatistics, ServiceError]
