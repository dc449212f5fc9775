import sys
import time
import uuid
from contextlib import suppress
from typing import List, Optional

from fastapi import FastAPI, Request, Response
from fastapi.responses import PlainTextResponse
from loguru import logger
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import Settings
from .errors import ProductServiceError, error_response, handle_error
from .metrics import REQUEST_COUNT, REQUEST_LATENCY, SERVICE_NAME, endpoint_label
from .models import ProductCollection
from .pipeline import run_stages
from .routes import router as products_router


# Sinks added by configure_logging; 0 is loguru's default stderr handler
_handler_ids: List[int] = [0]


def configure_logging(settings: Settings) -> None:
    """Replace the sinks this module installed, leaving any other sink alone."""
    while _handler_ids:
        with suppress(ValueError):
            logger.remove(_handler_ids.pop())
    _handler_ids.append(logger.add(sys.stderr, level=settings.log_level))
    if settings.log_file:
        # Logs JSON (niveaux INFO, WARNING, ERROR)
        _handler_ids.append(logger.add(
            sink=settings.log_file,
            format="{time:YYYY-MM-DDTHH:mm:ss.SSSZ} | {level} | {message} | {extra}",
            level=settings.log_level,
            serialize=True,
            rotation="1 day",
            delay=True,
        ))


def create_app(settings: Optional[Settings] = None, products: Optional[ProductCollection] = None) -> FastAPI:
    """
    Build the Products Service.

    The collection is created here, once per app, and handed to every
    handler through ``app.state``; tests get a fresh catalogue by building
    a fresh app.
    """
    settings = settings or Settings.from_env()
    configure_logging(settings)

    app = FastAPI(title="Products Service")
    app.state.settings = settings
    app.state.products = products if products is not None else ProductCollection.seeded()

    app.add_exception_handler(ProductServiceError, handle_error)
    app.add_exception_handler(StarletteHTTPException, handle_error)

    # Pipeline: stages (log, auth) -> routing -> validation -> handler
    @app.middleware("http")
    async def run_pipeline(request: Request, call_next):
        # Generate or propagate correlation ID (trace-id)
        trace_id = request.headers.get("X-Trace-ID", str(uuid.uuid4()))
        start_time = time.time()
        request.state.trace_id = trace_id

        with logger.contextualize(trace_id=trace_id, service=SERVICE_NAME):
            try:
                run_stages(request)
                response = await call_next(request)
            except Exception as exc:
                # Short-circuit from a stage, or an unexpected failure in a handler
                response = error_response(request, exc)

            latency = time.time() - start_time
            endpoint = endpoint_label(request)
            REQUEST_COUNT.labels(
                service=SERVICE_NAME,
                method=request.method,
                endpoint=endpoint,
                status=response.status_code
            ).inc()
            REQUEST_LATENCY.labels(
                service=SERVICE_NAME,
                method=request.method,
                endpoint=endpoint
            ).observe(latency)

            logger.info(f"Response status: {response.status_code} ({latency:.3f}s)")

            response.headers["X-Trace-ID"] = trace_id
            return response

    @app.get("/", response_class=PlainTextResponse)
    async def root():
        return "Hello World"

    @app.get("/metrics")
    async def metrics():
        """Endpoint /metrics compatible Prometheus"""
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    @app.get("/health")
    async def health():
        """Health check endpoint"""
        return {"status": "healthy", "service": SERVICE_NAME}

    app.include_router(products_router)
    return app


app = create_app()


if __name__ == "__main__":
    settings = app.state.settings
    logger.info(f"Server is running on http://localhost:{settings.port}")
    import uvicorn
    uvicorn.run(app, host=settings.host, port=settings.port)
