"""
Domain models for the shortlink service.

Entries live only in the registry (in memory); click analytics are stored
on the entry itself as an append-only list.
"""

from .url import UrlEntry, ClickEvent, DIRECT_REFERRER, UNKNOWN

__all__ = ["UrlEntry", "ClickEvent", "DIRECT_REFERRER", "UNKNOWN"]
