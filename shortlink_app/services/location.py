"""
Best-effort click location.

No geo database is bundled; the location comes from country headers set by
a CDN or edge proxy in front of the service. Private and loopback addresses
resolve to "Local", everything else to "Unknown".
"""

import ipaddress
from typing import Mapping, Optional

from shortlink_app.models.url import UNKNOWN

LOCAL = "Local"

# Checked in order; the first non-empty, non-placeholder value wins
GEO_COUNTRY_HEADERS = (
    "cf-ipcountry",
    "x-vercel-ip-country",
    "cloudfront-viewer-country",
    "x-appengine-country",
    "x-country-code",
)

# Placeholder values CDNs send when they could not locate the client
_UNRESOLVED_COUNTRIES = {"", "xx", "t1", "zz"}


def _lower_keys(headers: Mapping[str, str]) -> dict:
    return {k.lower(): v for k, v in headers.items()}


def client_ip_from(
    headers: Mapping[str, str],
    peer_host: Optional[str] = None,
    trust_forwarded: bool = True,
) -> Optional[str]:
    """Client IP, preferring the first X-Forwarded-For hop when trusted."""
    if trust_forwarded:
        forwarded_for = _lower_keys(headers).get("x-forwarded-for", "")
        first_hop = forwarded_for.split(",")[0].strip()
        if first_hop:
            return first_hop
    return peer_host or None


def resolve_location(headers: Mapping[str, str], client_ip: Optional[str] = None) -> str:
    """Resolve a coarse location string for a click.

    Args:
        headers: Request headers
        client_ip: Client IP address, if known

    Returns:
        Upper-case country code, "Local" or "Unknown"
    """
    lowered = _lower_keys(headers)
    for header in GEO_COUNTRY_HEADERS:
        country = (lowered.get(header) or "").strip()
        if country.lower() not in _UNRESOLVED_COUNTRIES:
            return country.upper()

    if client_ip:
        try:
            address = ipaddress.ip_address(client_ip)
        except ValueError:
            return UNKNOWN
        if address.is_loopback or address.is_private or address.is_link_local:
            return LOCAL

    return UNKNOWN
