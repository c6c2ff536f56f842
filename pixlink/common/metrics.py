"""Prometheus metric definitions."""

from prometheus_client import Counter, Histogram, generate_latest
from starlette.responses import Response


pix_requests_total = Counter("pix_requests_total", "Total PIX generation requests", ["service", "source"])
pix_failures_total = Counter("pix_failures_total", "Failed PIX generation requests", ["service", "error"])
gateway_latency_seconds = Histogram("gateway_latency_seconds", "Outbound gateway call latency seconds", ["service"])
link_code_collisions_total = Counter(
    "link_code_collisions_total",
    "Link code candidates rejected because the code already existed",
    ["service"],
)
link_access_total = Counter("link_access_total", "Successful payment link resolutions", ["service"])
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["service", "route", "method", "status_code"],
)
http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request duration seconds",
    ["service", "route", "method"],
)


def metrics_response() -> Response:
    """Expose all registered Prometheus metrics in text format."""

    return Response(content=generate_latest(), media_type="text/plain")
