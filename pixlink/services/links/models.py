"""Link-store database models.

This DB is the source of truth for shareable payment links, vendor gateway
credentials, and the default checkout amount.
"""

from datetime import datetime, timezone
from decimal import Decimal
from uuid import uuid4

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, Text, func
from sqlalchemy.orm import Mapped, mapped_column

from pixlink.common.db import Base


class PaymentLink(Base):
    """Shareable link fixing the amount (and optionally the vendor) of a PIX charge."""

    __tablename__ = "payment_links"

    link_id: Mapped[str] = mapped_column(String, primary_key=True, default=lambda: str(uuid4()))
    code: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2))
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True, index=True)
    access_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    owner_id: Mapped[str | None] = mapped_column(String, nullable=True, index=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now()
    )


class GatewayCredential(Base):
    """Vendor-owned gateway key pair; both halves are needed to route to it."""

    __tablename__ = "gateway_credentials"

    owner_id: Mapped[str] = mapped_column(String, primary_key=True)
    public_key: Mapped[str | None] = mapped_column(String, nullable=True)
    secret_key: Mapped[str | None] = mapped_column(String, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    @property
    def is_complete(self) -> bool:
        return bool(self.public_key) and bool(self.secret_key)


class CheckoutSetting(Base):
    """Key/value settings for link-less checkout (e.g. `checkout_amount`)."""

    __tablename__ = "checkout_settings"

    key: Mapped[str] = mapped_column(String, primary_key=True)
    value: Mapped[str] = mapped_column(String)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )
