from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import RedirectResponse

from shortlink_app.api.errors import http_error
from shortlink_app.config import settings
from shortlink_app.dependencies import get_url_service
from shortlink_app.services.location import client_ip_from
from shortlink_app.services.results import ServiceError
from shortlink_app.services.url_service import RequestContext, URLService

router = APIRouter(tags=["redirect"])


@router.get("/{short_code}")
async def redirect_to_long_url(
    short_code: str,
    request: Request,
    url_service: URLService = Depends(get_url_service)
):
    """
    Redirect to the original URL.

    Flow:
    1. Resolve the code (404 unknown, 410 expired)
    2. Hand the click to the service; with a queue backend it is only
       published here and applied by the click worker
    3. Redirect immediately
    """
    context = RequestContext(
        referrer=request.headers.get("referer") or request.headers.get("referrer"),
        user_agent=request.headers.get("user-agent"),
        client_ip=client_ip_from(
            request.headers,
            request.client.host if request.client else None,
            trust_forwarded=settings.trust_forwarded_headers,
        ),
        headers=dict(request.headers),
    )

    long_url = await url_service.resolve_redirect(short_code, context)
    if isinstance(long_url, ServiceError):
        raise http_error(long_url)

    return RedirectResponse(url=long_url, status_code=status.HTTP_302_FOUND)
