from typing import List, Union

from fastapi import APIRouter, Depends, HTTPException, Response, status

from shortlink_app.api.errors import http_error
from shortlink_app.config import settings
from shortlink_app.dependencies import get_url_service
from shortlink_app.schemas.url import (
    BatchCreateResponse,
    BatchItemResponse,
    ClickResponse,
    ErrorDetail,
    URLCreate,
    URLCreateResponse,
    URLStats,
)
from shortlink_app.services.results import ServiceError
from shortlink_app.services.url_service import URLService

router = APIRouter(prefix="/shorturls", tags=["shorturls"])


@router.post(
    "",
    response_model=Union[URLCreateResponse, BatchCreateResponse],
    status_code=status.HTTP_201_CREATED,
)
async def create_short_url(
    payload: Union[URLCreate, List[URLCreate]],
    response: Response,
    url_service: URLService = Depends(get_url_service)
):
    """Create one short URL, or several when the body is a JSON array"""
    if not isinstance(payload, list):
        result = await url_service.create_short_url(payload.url, payload.shortcode, payload.validity)
        if isinstance(result, ServiceError):
            raise http_error(result)
        return URLCreateResponse(short_link=result.short_link, expiry=result.expiry)

    if not payload or len(payload) > settings.max_batch_size:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "validation",
                "message": f"Batch must contain between 1 and {settings.max_batch_size} URLs",
            },
        )

    results = await url_service.create_short_urls([item.model_dump() for item in payload])

    # Partial failure is normal for batches; per-item status lives in the body
    response.status_code = status.HTTP_200_OK
    items = []
    for index, result in enumerate(results):
        if isinstance(result, ServiceError):
            items.append(BatchItemResponse(index=index, ok=False, error=ErrorDetail(**result.to_dict())))
        else:
            items.append(BatchItemResponse(
                index=index, ok=True, short_link=result.short_link, expiry=result.expiry
            ))
    return BatchCreateResponse(results=items)


@router.get("/{short_code}", response_model=URLStats)
async def get_url_stats(
    short_code: str,
    url_service: URLService = Depends(get_url_service)
):
    """Get statistics for a short URL, every click included"""
    stats = await url_service.get_url_stats(short_code)
    if isinstance(stats, ServiceError):
        raise http_error(stats)

    return URLStats(
        shortcode=stats.shortcode,
        original_url=stats.original_url,
        created_at=stats.created_at,
        expires_at=stats.expires_at,
        total_clicks=stats.total_clicks,
        clicks=[
            ClickResponse(
                timestamp=click.timestamp,
                referrer=click.referrer,
                location=click.location,
                user_agent=click.user_agent,
            )
            for click in stats.clicks
        ],
    )
