"""Per-request gateway credential routing (platform vs. link owner)."""

from dataclasses import dataclass
from typing import Literal

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from pixlink.common.config import CommonSettings
from pixlink.common.errors import ConfigMissing, InvalidLink, StoreUnavailable, VendorCredentialsIncomplete
from pixlink.common.logging import logger
from pixlink.services.links.models import GatewayCredential, PaymentLink

CredentialSource = Literal["platform", "vendor"]


@dataclass(frozen=True)
class PlatformCredentials:
    """Platform-default key pair, read from settings once at startup."""

    public_key: str | None
    secret_key: str | None

    @classmethod
    def from_settings(cls, config: CommonSettings) -> "PlatformCredentials":
        return cls(public_key=config.gateway_public_key, secret_key=config.gateway_secret_key)

    @property
    def is_complete(self) -> bool:
        return bool(self.public_key) and bool(self.secret_key)


@dataclass(frozen=True)
class ResolvedCredentials:
    public_key: str
    secret_key: str
    source: CredentialSource
    owner_id: str | None = None

    def __repr__(self) -> str:
        return f"ResolvedCredentials(source={self.source!r}, owner_id={self.owner_id!r})"


class CredentialResolver:
    """Pick the key pair for one payment request.

    Once a link names an owner, only that owner's complete pair is acceptable;
    incomplete vendor setup fails the request and never routes to platform keys.
    """

    def __init__(self, session_factory, platform: PlatformCredentials) -> None:
        self.session_factory = session_factory
        self.platform = platform

    def _platform(self) -> ResolvedCredentials:
        if not self.platform.is_complete:
            logger.error("platform gateway credentials missing")
            raise ConfigMissing("platform gateway credentials are not configured")
        return ResolvedCredentials(
            public_key=self.platform.public_key,
            secret_key=self.platform.secret_key,
            source="platform",
        )

    def resolve(self, link_code: str | None = None) -> ResolvedCredentials:
        if link_code is None:
            return self._platform()

        try:
            with self.session_factory() as db:
                link = db.execute(
                    select(PaymentLink).where(PaymentLink.code == link_code, PaymentLink.is_active.is_(True))
                ).scalar_one_or_none()
                if link is None:
                    raise InvalidLink(link_code)
                if link.owner_id is None:
                    return self._platform()
                credential = db.get(GatewayCredential, link.owner_id)
        except SQLAlchemyError as exc:
            logger.exception("credential lookup failed link_code=%s", link_code)
            raise StoreUnavailable(str(exc)) from exc

        if credential is None or not credential.is_complete:
            logger.warning(
                "vendor credentials incomplete owner_id=%s link_code=%s configured=%s",
                link.owner_id,
                link_code,
                credential is not None,
            )
            raise VendorCredentialsIncomplete(link.owner_id)
        return ResolvedCredentials(
            public_key=credential.public_key,
            secret_key=credential.secret_key,
            source="vendor",
            owner_id=link.owner_id,
        )
