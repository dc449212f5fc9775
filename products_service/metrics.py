from prometheus_client import Counter, Histogram
from starlette.routing import Match

SERVICE_NAME = "products-service"

# Prometheus metrics
REQUEST_COUNT = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "method", "endpoint", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["service", "method", "endpoint"]
)
ERROR_COUNT = Counter(
    "http_errors_total",
    "Total HTTP errors",
    ["service", "endpoint", "error_type"]
)

UNMATCHED_ENDPOINT = "unmatched"


def endpoint_label(request) -> str:
    """Route template for metric labels (``/api/products/{product_id}``), never the raw path."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return route.path
    return UNMATCHED_ENDPOINT
