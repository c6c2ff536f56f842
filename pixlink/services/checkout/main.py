"""HTTP surface for payment links and PIX checkout.

Payer endpoints are open; merchant endpoints require the configured API key.
Taxonomy failures are mapped to their public message only, upstream gateway
bodies and tenant configuration never reach the response.
"""

from time import perf_counter
from uuid import uuid4

from fastapi import FastAPI, Header, HTTPException, Request

from pixlink.common.config import settings
from pixlink.common.db import SessionLocal
from pixlink.common.errors import PixLinkError
from pixlink.common.logging import configure_logging, link_code_ctx, trace_id_ctx
from pixlink.common.metrics import http_request_duration_seconds, http_requests_total, metrics_response
from pixlink.common.startup import log_startup_config, warn_missing_platform_credentials
from pixlink.common.tracing import instrument_app, setup_tracing
from pixlink.services.checkout.credentials import CredentialResolver, PlatformCredentials
from pixlink.services.checkout.expiry import ExpiryController
from pixlink.services.checkout.gateway import Customer, GatewayClient
from pixlink.services.checkout.schemas import (
    CheckoutAmountPayload,
    LinkCreateRequest,
    LinkCreateResponse,
    LinkStatsResponse,
    LinkView,
    PixCheckoutRequest,
    PixCheckoutResponse,
    VendorCredentialsRequest,
)
from pixlink.services.checkout.service import CheckoutService
from pixlink.services.links.codes import CodeGenerator
from pixlink.services.links.service import LinkLifecycleManager

configure_logging()
setup_tracing(settings.service_name)
log_startup_config(
    settings.service_name,
    [
        "SERVICE_NAME",
        "POSTGRES_DSN",
        "GATEWAY_URL",
        "GATEWAY_PUBLIC_KEY",
        "GATEWAY_SECRET_KEY",
        "PIX_EXPIRES_IN_SECONDS",
        "PUBLIC_ORIGIN",
    ],
)
warn_missing_platform_credentials(settings)

links = LinkLifecycleManager(
    SessionLocal,
    CodeGenerator(length=settings.link_code_length, max_attempts=settings.link_code_max_attempts),
    service_name=settings.service_name,
)
resolver = CredentialResolver(SessionLocal, PlatformCredentials.from_settings(settings))
gateway = GatewayClient(
    settings.gateway_url,
    timeout_seconds=settings.gateway_timeout_seconds,
    expires_in_seconds=settings.pix_expires_in_seconds,
    item_title=settings.pix_item_title,
    service_name=settings.service_name,
)
checkout = CheckoutService(
    links,
    resolver,
    gateway,
    controller_factory=lambda: ExpiryController(fallback_window_seconds=settings.pix_expires_in_seconds),
    service_name=settings.service_name,
)

app = FastAPI(title="PixLink Checkout")
instrument_app(app)


@app.middleware("http")
async def metrics_middleware(request: Request, call_next):
    """Record request count and latency for every HTTP call."""

    start = perf_counter()
    route = request.url.path
    method = request.method
    status_code = 500
    try:
        response = await call_next(request)
        status_code = response.status_code
        route_obj = request.scope.get("route")
        if route_obj is not None and getattr(route_obj, "path", None):
            route = route_obj.path
        return response
    finally:
        elapsed = max(0.0, perf_counter() - start)
        http_request_duration_seconds.labels(
            service=settings.service_name,
            route=route,
            method=method,
        ).observe(elapsed)
        http_requests_total.labels(
            service=settings.service_name,
            route=route,
            method=method,
            status_code=str(status_code),
        ).inc()


def enforce_api_key(x_api_key: str | None) -> None:
    """Reject merchant requests that do not provide the configured API key."""

    if x_api_key != settings.api_key:
        raise HTTPException(status_code=401, detail="invalid API key")


def to_http(exc: PixLinkError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.public_message)


def link_url(code: str) -> str:
    return f"{settings.public_origin.rstrip('/')}/pagar/{code}"


@app.get("/pagar/{code}", response_model=LinkView)
def open_link(code: str):
    """Payer opened a shared link: validate it and count the visit."""

    token = link_code_ctx.set(code)
    try:
        resolution = links.resolve_and_touch(code)
    except PixLinkError as exc:
        raise to_http(exc) from exc
    finally:
        link_code_ctx.reset(token)
    return LinkView(code=resolution.code, amount=resolution.amount, description=resolution.description)


@app.post("/checkout/pix", response_model=PixCheckoutResponse)
async def create_pix(req: PixCheckoutRequest, x_correlation_id: str | None = Header(default=None)):
    """Generate a PIX charge, routed by the optional link code."""

    trace_id_ctx.set(x_correlation_id or str(uuid4()))
    customer = Customer(name=req.customer.name, email=req.customer.email, document=req.customer.document)
    try:
        result = await checkout.start_pix_checkout(customer, amount=req.amount, link_code=req.link_code)
    except PixLinkError as exc:
        raise to_http(exc) from exc

    controller = result.controller
    return PixCheckoutResponse(
        pay_code=result.transaction.pay_code,
        amount=result.amount,
        amount_minor_units=result.transaction.amount_minor_units,
        expires_at=controller.expires_at,
        state=controller.state,
        remaining_seconds=controller.remaining_seconds,
        countdown=controller.display,
        credential_source=result.credentials.source,
        link_code=result.link_code,
    )


@app.post("/links", response_model=LinkCreateResponse, status_code=201)
def create_link(req: LinkCreateRequest, x_api_key: str | None = Header(default=None)):
    """Mint a shareable payment link."""

    enforce_api_key(x_api_key)
    try:
        link = links.create_link(req.amount, description=req.description, owner_id=req.owner_id)
    except PixLinkError as exc:
        raise to_http(exc) from exc
    return LinkCreateResponse(
        code=link.code,
        url=link_url(link.code),
        amount=link.amount,
        owner_id=link.owner_id,
        created_at=link.created_at,
    )


@app.get("/links/stats", response_model=LinkStatsResponse)
def link_stats(owner_id: str | None = None, x_api_key: str | None = Header(default=None)):
    """Dashboard counters: links, active links, visits."""

    enforce_api_key(x_api_key)
    try:
        return LinkStatsResponse(**links.link_stats(owner_id))
    except PixLinkError as exc:
        raise to_http(exc) from exc


@app.put("/vendors/{owner_id}/credentials")
def save_vendor_credentials(
    owner_id: str,
    req: VendorCredentialsRequest,
    x_api_key: str | None = Header(default=None),
):
    """Store a vendor's gateway key pair."""

    enforce_api_key(x_api_key)
    try:
        links.upsert_vendor_credentials(owner_id, req.public_key, req.secret_key)
    except PixLinkError as exc:
        raise to_http(exc) from exc
    return {"owner_id": owner_id, "configured": True}


@app.get("/settings/checkout-amount", response_model=CheckoutAmountPayload)
def get_checkout_amount(x_api_key: str | None = Header(default=None)):
    enforce_api_key(x_api_key)
    try:
        amount = links.get_checkout_amount()
    except PixLinkError as exc:
        raise to_http(exc) from exc
    if amount is None:
        raise HTTPException(status_code=404, detail="checkout amount not configured")
    return CheckoutAmountPayload(amount=amount)


@app.put("/settings/checkout-amount", response_model=CheckoutAmountPayload)
def set_checkout_amount(req: CheckoutAmountPayload, x_api_key: str | None = Header(default=None)):
    """Set the amount charged by link-less checkout."""

    enforce_api_key(x_api_key)
    try:
        return CheckoutAmountPayload(amount=links.set_checkout_amount(req.amount))
    except PixLinkError as exc:
        raise to_http(exc) from exc


@app.get("/metrics")
def metrics():
    """Prometheus scrape endpoint."""

    return metrics_response()


@app.get("/health")
def health():
    """Container health probe endpoint."""

    return {"ok": True}
