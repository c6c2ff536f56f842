"""Failure taxonomy shared by link, credential and gateway components.

Every component catches store/transport exceptions at its boundary and
re-raises one of these kinds. `public_message` is the only text that may reach
the payer; diagnostic fields stay in logs.
"""


class PixLinkError(Exception):
    """Base class for request-scoped failures."""

    status_code: int = 500
    public_message: str = "unexpected error"


class ConfigMissing(PixLinkError):
    """Platform gateway key pair is not configured."""

    status_code = 503
    public_message = "service unavailable"


class InvalidLink(PixLinkError):
    """Link code is absent, unknown, or inactive."""

    status_code = 404
    public_message = "payment link invalid or expired"

    def __init__(self, code: str | None) -> None:
        super().__init__(f"invalid payment link code={code!r}")
        self.code = code


class VendorCredentialsIncomplete(PixLinkError):
    """Link owner has no complete key pair.

    Surfaced exactly like `ConfigMissing` so tenant setup is never leaked.
    """

    status_code = 503
    public_message = ConfigMissing.public_message

    def __init__(self, owner_id: str) -> None:
        super().__init__(f"vendor credentials incomplete owner_id={owner_id}")
        self.owner_id = owner_id


class GenerationExhausted(PixLinkError):
    """Link code minting failed after the bounded number of attempts."""

    status_code = 503
    public_message = "could not create payment link, try again"

    def __init__(self, attempts: int) -> None:
        super().__init__(f"link code generation exhausted after {attempts} attempts")
        self.attempts = attempts


class GatewayRejected(PixLinkError):
    """Upstream gateway returned a non-success status or was unreachable."""

    status_code = 502
    public_message = "payment could not be generated, try again"

    def __init__(self, upstream_status: int | None, upstream_body: str) -> None:
        super().__init__(f"gateway rejected request status={upstream_status}")
        self.upstream_status = upstream_status
        self.upstream_body = upstream_body


class MalformedGatewayResponse(PixLinkError):
    """Gateway answered with success but no usable pay code."""

    status_code = 502
    public_message = GatewayRejected.public_message


class StoreUnavailable(PixLinkError):
    """Relational store failed while serving the request."""

    status_code = 503
    public_message = "service unavailable"


class InvalidAmount(PixLinkError):
    """Charge amount is missing or rounds to less than one minor unit."""

    status_code = 422
    public_message = "invalid payment amount"
