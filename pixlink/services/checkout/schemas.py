"""API request/response schemas for checkout and merchant endpoints."""

from datetime import datetime
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, Field


class CustomerPayload(BaseModel):
    """Payer identity sent along with the PIX charge."""

    name: str = Field(min_length=1)
    email: str = Field(min_length=3)
    document: str = Field(min_length=1)


class PixCheckoutRequest(BaseModel):
    """Payload accepted by `POST /checkout/pix`.

    With `link_code` the amount comes from the link and `amount` is ignored.
    """

    customer: CustomerPayload
    amount: Annotated[Decimal, Field(gt=0, max_digits=12, decimal_places=3)] | None = None
    link_code: Annotated[str, Field(min_length=1, max_length=32)] | None = None


class PixCheckoutResponse(BaseModel):
    pay_code: str
    amount: Decimal
    amount_minor_units: int
    expires_at: datetime
    state: str
    remaining_seconds: int
    countdown: str
    credential_source: str
    link_code: str | None = None


class LinkView(BaseModel):
    """Public view of a payment link opened by a payer."""

    code: str
    amount: Decimal
    description: str | None = None


class LinkCreateRequest(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
    description: Annotated[str, Field(max_length=500)] | None = None
    owner_id: Annotated[str, Field(min_length=1)] | None = None


class LinkCreateResponse(BaseModel):
    code: str
    url: str
    amount: Decimal
    owner_id: str | None = None
    created_at: datetime | None = None


class LinkStatsResponse(BaseModel):
    owner_id: str | None = None
    total_links: int
    active_links: int
    total_visits: int


class VendorCredentialsRequest(BaseModel):
    public_key: str = Field(min_length=1)
    secret_key: str = Field(min_length=1)


class CheckoutAmountPayload(BaseModel):
    amount: Decimal = Field(gt=0, max_digits=12, decimal_places=2)
