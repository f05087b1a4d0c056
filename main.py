import asyncio
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI
from shortlink_app.config import settings
from shortlink_app.logging_config import setup_logging, get_logger
from shortlink_app.api.v1 import urls, redirect
from shortlink_app.click_processor.click_worker import ClickWorker
from shortlink_app.dependencies import get_registry, get_queue
from shortlink_app.middleware.logging import RequestLoggingMiddleware
from shortlink_app.registry.strategies import RegistryStrategy
from shortlink_app.registry.sweeper import ExpirySweeper

setup_logging(settings.log_level, settings.log_file, settings.log_json)
logger = get_logger("main")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Run the expiry sweeper and, with a queue backend, the click worker"""
    registry = get_registry()
    queue = get_queue()

    sweeper = ExpirySweeper(registry, interval=settings.sweep_interval_seconds)
    tasks = [asyncio.create_task(sweeper.start())]

    worker = None
    if queue is not None:
        worker = ClickWorker(queue=queue, registry=registry)
        tasks.append(asyncio.create_task(worker.start()))

    logger.info("%s %s started (%s)", settings.app_name, settings.app_version, settings.environment)
    try:
        yield
    finally:
        sweeper.stop()
        if worker is not None:
            worker.stop()
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)

        # Apply clicks that were published but not yet consumed
        if worker is not None:
            await worker.drain()
            await queue.close()
        logger.info("%s stopped", settings.app_name)


# Create FastAPI app
app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="A URL shortener with click analytics built with FastAPI",
    debug=settings.debug,
    lifespan=lifespan,
)
app.add_middleware(RequestLoggingMiddleware)


@app.get("/")
def read_root():
    """Root endpoint with API information"""
    return {
        "message": f"Welcome to {settings.app_name}",
        "version": settings.app_version,
        "endpoints": {
            "POST /shorturls": "Create a short URL (or a batch of them)",
            "GET /shorturls/{shortcode}": "Get URL statistics",
            "GET /{shortcode}": "Redirect to original URL",
            "GET /health": "Health check",
        },
        "docs": "/docs",
    }


@app.get("/health")
async def health_check(registry: RegistryStrategy = Depends(get_registry)):
    """Health check endpoint"""
    return {
        "status": "healthy",
        "environment": settings.environment,
        "urls": await registry.count(),
    }




######## Include routers
app.include_router(urls.router)
app.include_router(redirect.router)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("main:app", host=settings.host, port=settings.port, reload=settings.debug)
