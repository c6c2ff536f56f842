"""Payment link lifecycle: creation, payer access, and merchant settings."""

from dataclasses import dataclass
from decimal import Decimal

from sqlalchemy import case, func, select, update
from sqlalchemy.exc import SQLAlchemyError

from pixlink.common.errors import InvalidLink, StoreUnavailable
from pixlink.common.logging import logger
from pixlink.common.metrics import link_access_total
from pixlink.services.links.codes import CodeGenerator
from pixlink.services.links.models import CheckoutSetting, GatewayCredential, PaymentLink

CHECKOUT_AMOUNT_KEY = "checkout_amount"


@dataclass(frozen=True)
class LinkResolution:
    """What the payer flow is allowed to know about a link."""

    code: str
    amount: Decimal
    owner_id: str | None
    description: str | None


def _resolution(link: PaymentLink) -> LinkResolution:
    return LinkResolution(
        code=link.code,
        amount=Decimal(link.amount),
        owner_id=link.owner_id,
        description=link.description,
    )


class LinkLifecycleManager:
    """Owns link access counting and merchant-side link/settings writes."""

    def __init__(self, session_factory, code_generator: CodeGenerator, service_name: str = "pixlink") -> None:
        self.session_factory = session_factory
        self.code_generator = code_generator
        self.service_name = service_name

    def _get_active(self, db, code: str) -> PaymentLink:
        link = db.execute(
            select(PaymentLink).where(PaymentLink.code == code, PaymentLink.is_active.is_(True))
        ).scalar_one_or_none()
        if link is None:
            raise InvalidLink(code)
        return link

    def resolve_and_touch(self, code: str) -> LinkResolution:
        """Validate an active link and count one access.

        The increment is a single conditional UPDATE so concurrent payers on the
        same link never lose counts; zero affected rows means the link is
        unknown or inactive.
        """

        if not code:
            raise InvalidLink(code)
        try:
            with self.session_factory() as db:
                result = db.execute(
                    update(PaymentLink)
                    .where(PaymentLink.code == code, PaymentLink.is_active.is_(True))
                    .values(access_count=PaymentLink.access_count + 1)
                )
                if result.rowcount != 1:
                    db.rollback()
                    raise InvalidLink(code)
                link = self._get_active(db, code)
                db.commit()
        except SQLAlchemyError as exc:
            logger.exception("link store failure during resolve code=%s", code)
            raise StoreUnavailable(str(exc)) from exc
        link_access_total.labels(service=self.service_name).inc()
        logger.info("payment link accessed code=%s access_count=%s", code, link.access_count)
        return _resolution(link)

    def load_active(self, code: str) -> LinkResolution:
        """Validate an active link without counting an access."""

        if not code:
            raise InvalidLink(code)
        try:
            with self.session_factory() as db:
                return _resolution(self._get_active(db, code))
        except SQLAlchemyError as exc:
            raise StoreUnavailable(str(exc)) from exc

    def create_link(self, amount: Decimal, description: str | None = None, owner_id: str | None = None) -> PaymentLink:
        """Mint a new active link under a unique code."""

        if amount <= 0:
            raise ValueError("amount must be positive")

        def build(code: str) -> PaymentLink:
            return PaymentLink(
                code=code,
                amount=amount,
                description=description,
                owner_id=owner_id,
                is_active=True,
                access_count=0,
            )

        with self.session_factory() as db:
            link = self.code_generator.mint(db, build)
        logger.info("payment link created code=%s owner_id=%s", link.code, owner_id)
        return link

    def link_stats(self, owner_id: str | None = None) -> dict:
        """Dashboard counters over links, optionally scoped to one owner."""

        stmt = select(
            func.count(PaymentLink.link_id),
            func.coalesce(func.sum(PaymentLink.access_count), 0),
            func.sum(case((PaymentLink.is_active.is_(True), 1), else_=0)),
        )
        if owner_id is not None:
            stmt = stmt.where(PaymentLink.owner_id == owner_id)
        try:
            with self.session_factory() as db:
                total_links, total_visits, active_links = db.execute(stmt).one()
        except SQLAlchemyError as exc:
            raise StoreUnavailable(str(exc)) from exc
        return {
            "owner_id": owner_id,
            "total_links": int(total_links),
            "active_links": int(active_links or 0),
            "total_visits": int(total_visits),
        }

    def upsert_vendor_credentials(self, owner_id: str, public_key: str, secret_key: str) -> GatewayCredential:
        """Create or replace a vendor key pair; both halves are mandatory."""

        if not public_key or not secret_key:
            raise ValueError("both public_key and secret_key are required")
        try:
            with self.session_factory() as db:
                credential = db.get(GatewayCredential, owner_id)
                if credential is None:
                    credential = GatewayCredential(owner_id=owner_id)
                    db.add(credential)
                credential.public_key = public_key
                credential.secret_key = secret_key
                db.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailable(str(exc)) from exc
        logger.info("vendor gateway credentials saved owner_id=%s", owner_id)
        return credential

    def get_checkout_amount(self) -> Decimal | None:
        """Default amount used when checkout arrives without a link."""

        try:
            with self.session_factory() as db:
                setting = db.get(CheckoutSetting, CHECKOUT_AMOUNT_KEY)
        except SQLAlchemyError as exc:
            raise StoreUnavailable(str(exc)) from exc
        if setting is None:
            return None
        return Decimal(setting.value)

    def set_checkout_amount(self, amount: Decimal) -> Decimal:
        if amount <= 0:
            raise ValueError("amount must be positive")
        try:
            with self.session_factory() as db:
                setting = db.get(CheckoutSetting, CHECKOUT_AMOUNT_KEY)
                if setting is None:
                    setting = CheckoutSetting(key=CHECKOUT_AMOUNT_KEY)
                    db.add(setting)
                setting.value = str(amount)
                db.commit()
        except SQLAlchemyError as exc:
            raise StoreUnavailable(str(exc)) from exc
        return amount
