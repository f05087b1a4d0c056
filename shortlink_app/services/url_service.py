from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

from shortlink_app.config import settings
from shortlink_app.logging_config import get_logger
from shortlink_app.models.url import ClickEvent, DIRECT_REFERRER, UNKNOWN, UrlEntry, utc_now
from shortlink_app.queue.models import ClickMessage
from shortlink_app.queue.strategies import QueueStrategy
from shortlink_app.registry.strategies import RegistryStrategy, ShortcodeConflictError
from shortlink_app.services.location import resolve_location
from shortlink_app.services.results import (
    CreateResult,
    CreatedLink,
    ErrorKind,
    RedirectResult,
    ServiceError,
    StatisticsResult,
    UrlStatistics,
)
from shortlink_app.services.short_code_factory import ShortCodeFactory
from shortlink_app.services.short_code_strategies import ShortCodeExhaustedError, ShortCodeStrategy
from shortlink_app.services.validation import (
    InvalidRequest,
    NormalizedRequest,
    validate_batch,
    validate_request,
)

logger = get_logger(__name__)


def isoformat_utc(moment: datetime) -> str:
    """ISO-8601 in UTC with a 'Z' suffix, e.g. 2025-01-01T12:00:00.000Z"""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class RequestContext:
    """The parts of an incoming redirect request that end up in a click."""

    referrer: Optional[str] = None
    user_agent: Optional[str] = None
    client_ip: Optional[str] = None
    headers: Mapping[str, str] = field(default_factory=dict)


class URLService:
    """
    Shortlink use cases: create, batch create, redirect and statistics.

    The registry, click queue and short code strategy are injected:
    - Without a queue, clicks are appended to the registry inline
    - With a queue, clicks are published and a ClickWorker applies them

    Expected failures are returned as ServiceError values, never raised.
    """

    def __init__(
        self,
        registry: RegistryStrategy,
        queue: Optional[QueueStrategy] = None,
        short_code_strategy: Optional[ShortCodeStrategy] = None,
        base_url: Optional[str] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize URL service with dependencies.

        Args:
            registry: Shortcode registry
            queue: Click queue (optional, for asynchronous click recording)
            short_code_strategy: Generator for codes (defaults to the configured one)
            base_url: Prefix for short links (defaults to settings.base_url)
            clock: Source of "now", injectable for expiry tests
        """
        self.registry = registry
        self.queue = queue
        self.short_code_strategy = short_code_strategy or ShortCodeFactory.create_strategy()
        self.base_url = (base_url or settings.base_url).rstrip("/")
        self.clock = clock

    def build_short_link(self, shortcode: str) -> str:
        return f"{self.base_url}/{shortcode}"

    async def create_short_url(
        self,
        url: Any,
        shortcode: Any = None,
        validity: Any = None,
    ) -> CreateResult:
        """Validate and register one mapping"""
        request = validate_request(url, shortcode, validity)
        return await self._create(request)

    async def create_short_urls(self, items: List[Dict[str, Any]]) -> List[CreateResult]:
        """
        Create several mappings independently.

        Results line up with ``items`` by index. A failed item never
        rolls back or blocks the others.
        """
        results = []
        for request in validate_batch(items):
            results.append(await self._create(request))
        return results

    async def _create(self, request) -> CreateResult:
        if isinstance(request, InvalidRequest):
            for field_name, reason in request.errors.items():
                logger.warning("Validation error on %s: %s", field_name, reason)
            return ServiceError(
                ErrorKind.VALIDATION,
                "; ".join(request.errors.values()),
                fields=request.errors,
            )

        if request.shortcode is not None:
            return await self._insert_custom(request)
        return await self._insert_generated(request)

    async def _insert_custom(self, request: NormalizedRequest) -> CreateResult:
        entry = UrlEntry.create(request.shortcode, request.url, request.validity_minutes, self.clock())
        try:
            await self.registry.insert(entry)
        except ShortcodeConflictError:
            logger.warning("Short code collision detected: %s", request.shortcode)
            return ServiceError(
                ErrorKind.CONFLICT,
                f"Shortcode '{request.shortcode}' is already in use",
                fields={"shortcode": "already in use"},
            )
        return self._created(entry)

    async def _insert_generated(self, request: NormalizedRequest) -> CreateResult:
        # The probe inside generate() and the insert are separate steps, so a
        # concurrent request can take the code in between; retry on conflict
        for _ in range(settings.max_retries):
            try:
                code = await self.short_code_strategy.generate(self.registry)
            except ShortCodeExhaustedError as e:
                logger.error("Short code generation exhausted: %s", e)
                return ServiceError(ErrorKind.CAPACITY_EXHAUSTED, str(e))

            entry = UrlEntry.create(code, request.url, request.validity_minutes, self.clock())
            try:
                await self.registry.insert(entry)
            except ShortcodeConflictError:
                logger.warning("Short code collision detected: %s", code)
                continue
            return self._created(entry)

        logger.error("Gave up inserting a generated short code after %d attempts", settings.max_retries)
        return ServiceError(
            ErrorKind.CAPACITY_EXHAUSTED,
            f"Could not allocate a unique short code after {settings.max_retries} attempts",
        )

    def _created(self, entry: UrlEntry) -> CreatedLink:
        logger.info(
            "URL shortened successfully: %s -> %s (expires %s)",
            entry.shortcode, entry.original_url, isoformat_utc(entry.expires_at),
        )
        return CreatedLink(
            shortcode=entry.shortcode,
            short_link=self.build_short_link(entry.shortcode),
            expiry=isoformat_utc(entry.expires_at),
        )

    async def _live_entry(self, short_code: str):
        """Entry for a code if it exists and has not expired, else a ServiceError"""
        entry = await self.registry.lookup(short_code)

        if entry is None:
            logger.warning("Short URL not found: %s", short_code)
            return ServiceError(ErrorKind.NOT_FOUND, "Short URL not found")

        if entry.is_expired(self.clock()):
            logger.warning("Short URL expired: %s", short_code)
            return ServiceError(ErrorKind.EXPIRED, "Short URL has expired")

        return entry

    async def resolve_redirect(self, short_code: str, context: Optional[RequestContext] = None) -> RedirectResult:
        """
        Get the original URL and record the click.

        Flow:
        1. Lookup, with expiry checked against the clock
        2. Record the click (queue publish or inline append), best-effort
        3. Return the original URL for the 302
        """
        entry = await self._live_entry(short_code)
        if isinstance(entry, ServiceError):
            return entry

        context = context or RequestContext()
        await self._record_click(short_code, context)

        logger.info("Short URL accessed: %s (referrer %s)", short_code, context.referrer or DIRECT_REFERRER)
        return entry.original_url

    async def _record_click(self, short_code: str, context: RequestContext) -> None:
        # Analytics are best-effort: a failure here must not fail the redirect
        try:
            click = ClickEvent(
                timestamp=self.clock(),
                referrer=context.referrer or DIRECT_REFERRER,
                location=resolve_location(context.headers, context.client_ip),
                user_agent=context.user_agent or UNKNOWN,
            )
            if self.queue is not None:
                published = await self.queue.publish(
                    settings.queue_name,
                    ClickMessage(short_code=short_code, click=click),
                )
                if not published:
                    logger.warning("Click for %s could not be queued", short_code)
            elif not await self.registry.append_click(short_code, click):
                logger.warning("Click for %s not recorded: entry vanished", short_code)
        except Exception:
            logger.exception("Failed to record click for %s", short_code)

    async def get_url_stats(self, short_code: str) -> StatisticsResult:
        """Full snapshot of a live entry, clicks included"""
        entry = await self._live_entry(short_code)
        if isinstance(entry, ServiceError):
            return entry

        return UrlStatistics(
            shortcode=entry.shortcode,
            original_url=entry.original_url,
            created_at=entry.created_at,
            expires_at=entry.expires_at,
            total_clicks=entry.total_clicks,
            clicks=entry.clicks,
        )

    async def sweep_expired(self) -> int:
        return await self.registry.sweep_expired(self.clock())
