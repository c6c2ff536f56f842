"""Outbound PIX gateway call and response normalization.

The gateway contract has changed over time and both generations are still
seen in production, so responses go through a fixed list of variant matchers:

1. ``{"pix": {"qrcode": ..., "expirationDate": ...}}``
2. ``{"transaction": {"pix": {"brcode": ...}}}``

The first matcher that yields a non-empty code wins.
"""

import base64
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from time import perf_counter
from typing import Any, Callable

import httpx

from pixlink.common.errors import GatewayRejected, InvalidAmount, MalformedGatewayResponse
from pixlink.common.logging import logger
from pixlink.common.metrics import gateway_latency_seconds
from pixlink.services.checkout.credentials import ResolvedCredentials

TRANSACTIONS_PATH = "/v1/transactions"
DEFAULT_EXPIRES_IN_SECONDS = 600
_NON_DIGITS = re.compile(r"\D")


def to_minor_units(amount: Decimal | float | int | str) -> int:
    """Convert a currency amount to integer cents, rounding half up."""

    value = amount if isinstance(amount, Decimal) else Decimal(str(amount))
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def digits_only(value: str | None) -> str:
    return _NON_DIGITS.sub("", value or "")


@dataclass(frozen=True)
class Customer:
    name: str
    email: str
    document: str


@dataclass(frozen=True)
class GatewayPix:
    """Normalized view of a successful gateway response."""

    pay_code: str
    expires_at: datetime | None
    shape: str
    gateway_transaction_id: str | None = None


@dataclass(frozen=True)
class PixTransaction:
    """Ephemeral transaction handed back to the checkout flow."""

    amount_minor_units: int
    customer: Customer
    pay_code: str
    expires_at: datetime | None
    shape: str
    gateway_transaction_id: str | None = None


def _parse_expiration(raw: Any) -> datetime | None:
    if not isinstance(raw, str) or not raw:
        return None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        logger.warning("gateway expirationDate unparseable value=%s", raw)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _as_id(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _match_pix_qrcode(body: dict) -> GatewayPix | None:
    pix = body.get("pix")
    if not isinstance(pix, dict):
        return None
    code = pix.get("qrcode")
    if not isinstance(code, str) or not code:
        return None
    return GatewayPix(
        pay_code=code,
        expires_at=_parse_expiration(pix.get("expirationDate")),
        shape="pix.qrcode",
        gateway_transaction_id=_as_id(body.get("id")),
    )


def _match_transaction_brcode(body: dict) -> GatewayPix | None:
    transaction = body.get("transaction")
    if not isinstance(transaction, dict):
        return None
    pix = transaction.get("pix")
    if not isinstance(pix, dict):
        return None
    code = pix.get("brcode")
    if not isinstance(code, str) or not code:
        return None
    return GatewayPix(
        pay_code=code,
        expires_at=_parse_expiration(pix.get("expirationDate")),
        shape="transaction.pix.brcode",
        gateway_transaction_id=_as_id(transaction.get("id")),
    )


RESPONSE_VARIANTS: tuple[Callable[[dict], GatewayPix | None], ...] = (
    _match_pix_qrcode,
    _match_transaction_brcode,
)


def normalize_response(body: Any) -> GatewayPix:
    """Map any known response shape to `GatewayPix` or raise."""

    if isinstance(body, dict):
        for matcher in RESPONSE_VARIANTS:
            matched = matcher(body)
            if matched is not None:
                return matched
    raise MalformedGatewayResponse("gateway response carries no pix code")


def basic_auth_header(credentials: ResolvedCredentials) -> str:
    token = f"{credentials.secret_key}:{credentials.public_key}".encode("utf-8")
    return "Basic " + base64.b64encode(token).decode("ascii")


def build_transaction_payload(
    amount_minor_units: int,
    customer: Customer,
    expires_in_seconds: int,
    item_title: str,
) -> dict:
    return {
        "amount": amount_minor_units,
        "paymentMethod": "pix",
        "pix": {"expiresIn": expires_in_seconds},
        "items": [
            {
                "title": item_title,
                "unitPrice": amount_minor_units,
                "quantity": 1,
                "tangible": False,
            }
        ],
        "customer": {
            "name": customer.name,
            "email": customer.email,
            "document": {"type": "cpf", "number": digits_only(customer.document)},
        },
    }


class GatewayClient:
    """Issues transaction-creation calls against the PIX gateway."""

    def __init__(
        self,
        base_url: str,
        timeout_seconds: float = 15.0,
        expires_in_seconds: int = DEFAULT_EXPIRES_IN_SECONDS,
        item_title: str = "Pagamento PIX",
        transport: httpx.AsyncBaseTransport | None = None,
        service_name: str = "pixlink",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout_seconds = timeout_seconds
        self.expires_in_seconds = expires_in_seconds
        self.item_title = item_title
        self.transport = transport
        self.service_name = service_name

    async def create_pix_transaction(
        self,
        amount: Decimal | float | int | str,
        customer: Customer,
        credentials: ResolvedCredentials,
        expires_in_seconds: int | None = None,
        item_title: str | None = None,
    ) -> PixTransaction:
        """Create one PIX charge upstream and return its normalized form.

        Not idempotent: calling again after a failure may open a second
        upstream transaction.
        """

        amount_minor_units = to_minor_units(amount)
        if amount_minor_units <= 0:
            raise InvalidAmount("amount must be at least one minor unit")
        payload = build_transaction_payload(
            amount_minor_units,
            customer,
            expires_in_seconds or self.expires_in_seconds,
            item_title or self.item_title,
        )
        headers = {
            "Authorization": basic_auth_header(credentials),
            "Content-Type": "application/json",
            "Accept": "application/json",
        }

        start = perf_counter()
        try:
            async with httpx.AsyncClient(timeout=self.timeout_seconds, transport=self.transport) as client:
                resp = await client.post(f"{self.base_url}{TRANSACTIONS_PATH}", json=payload, headers=headers)
        except httpx.HTTPError as exc:
            logger.warning("gateway transport failure source=%s error=%s", credentials.source, exc)
            raise GatewayRejected(None, str(exc)) from exc
        finally:
            gateway_latency_seconds.labels(service=self.service_name).observe(max(0.0, perf_counter() - start))

        if not resp.is_success:
            logger.warning(
                "gateway rejected transaction status=%s source=%s body=%s",
                resp.status_code,
                credentials.source,
                resp.text[:1000],
            )
            raise GatewayRejected(resp.status_code, resp.text)

        try:
            pix = normalize_response(resp.json())
        except (ValueError, MalformedGatewayResponse) as exc:
            logger.error(
                "malformed gateway response status=%s source=%s body=%s",
                resp.status_code,
                credentials.source,
                resp.text[:1000],
            )
            if isinstance(exc, MalformedGatewayResponse):
                raise
            raise MalformedGatewayResponse("gateway response is not JSON") from exc

        logger.info(
            "pix transaction created amount=%s source=%s shape=%s gateway_id=%s",
            amount_minor_units,
            credentials.source,
            pix.shape,
            pix.gateway_transaction_id,
        )
        return PixTransaction(
            amount_minor_units=amount_minor_units,
            customer=customer,
            pay_code=pix.pay_code,
            expires_at=pix.expires_at,
            shape=pix.shape,
            gateway_transaction_id=pix.gateway_transaction_id,
        )
