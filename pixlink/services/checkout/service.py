"""Checkout orchestration: link -> credentials -> gateway -> countdown."""

from dataclasses import dataclass
from decimal import Decimal

from pixlink.common.errors import InvalidAmount, PixLinkError
from pixlink.common.logging import link_code_ctx, logger
from pixlink.common.metrics import pix_failures_total, pix_requests_total
from pixlink.services.checkout.credentials import CredentialResolver, ResolvedCredentials
from pixlink.services.checkout.expiry import ExpiryController
from pixlink.services.checkout.gateway import Customer, GatewayClient, PixTransaction, to_minor_units
from pixlink.services.links.service import LinkLifecycleManager


@dataclass
class CheckoutResult:
    amount: Decimal
    transaction: PixTransaction
    credentials: ResolvedCredentials
    controller: ExpiryController
    link_code: str | None = None


class CheckoutService:
    """Runs one payer checkout; holds no per-payer state between calls."""

    def __init__(
        self,
        links: LinkLifecycleManager,
        resolver: CredentialResolver,
        gateway: GatewayClient,
        controller_factory=ExpiryController,
        service_name: str = "pixlink",
    ) -> None:
        self.links = links
        self.resolver = resolver
        self.gateway = gateway
        self.controller_factory = controller_factory
        self.service_name = service_name

    def _amount_for(self, amount: Decimal | None) -> Decimal:
        if amount is not None:
            if to_minor_units(amount) <= 0:
                raise InvalidAmount(f"amount {amount} is below one minor unit")
            return amount
        default_amount = self.links.get_checkout_amount()
        if default_amount is None:
            raise InvalidAmount("amount is required when no default checkout amount is configured")
        return default_amount

    async def start_pix_checkout(
        self,
        customer: Customer,
        amount: Decimal | None = None,
        link_code: str | None = None,
        controller: ExpiryController | None = None,
    ) -> CheckoutResult:
        """Generate a PIX charge and start its countdown.

        Any taxonomy failure leaves `controller` in ERRORED before re-raising.
        """

        controller = controller or self.controller_factory()
        token = link_code_ctx.set(link_code or "")
        try:
            item_title = None
            if link_code is not None:
                link = self.links.load_active(link_code)
                amount = link.amount
                item_title = link.description
            else:
                amount = self._amount_for(amount)
            credentials = self.resolver.resolve(link_code)
            pix_requests_total.labels(service=self.service_name, source=credentials.source).inc()
            transaction = await self.gateway.create_pix_transaction(
                amount, customer, credentials, item_title=item_title
            )
        except PixLinkError as exc:
            controller.fail(type(exc).__name__)
            pix_failures_total.labels(service=self.service_name, error=type(exc).__name__).inc()
            logger.info("pix checkout failed error=%s", type(exc).__name__)
            raise
        finally:
            link_code_ctx.reset(token)

        controller.activate(transaction.pay_code, transaction.expires_at)
        return CheckoutResult(
            amount=amount,
            transaction=transaction,
            credentials=credentials,
            controller=controller,
            link_code=link_code,
        )
