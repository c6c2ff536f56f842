"""Shared fixtures: throwaway SQLite store and a scripted gateway transport."""

import json
import os
import tempfile
from decimal import Decimal

# Settings are read at import time, so the environment must be in place first.
_DB_DIR = tempfile.mkdtemp(prefix="pixlink-tests-")
os.environ["POSTGRES_DSN"] = f"sqlite:///{_DB_DIR}/pixlink.db"
os.environ["API_KEY"] = "test-api-key"
os.environ["GATEWAY_PUBLIC_KEY"] = "pk_platform"
os.environ["GATEWAY_SECRET_KEY"] = "sk_platform"
os.environ["GATEWAY_URL"] = "https://gateway.test"
os.environ["PUBLIC_ORIGIN"] = "https://pay.test"
os.environ["OTEL_ENABLED"] = "false"

import httpx
import pytest

from pixlink.common.db import Base, SessionLocal, engine
from pixlink.services.checkout.gateway import GatewayClient
from pixlink.services.links.codes import CodeGenerator
from pixlink.services.links.models import GatewayCredential, PaymentLink
from pixlink.services.links.service import LinkLifecycleManager


@pytest.fixture(autouse=True)
def fresh_schema():
    Base.metadata.drop_all(engine)
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture
def session_factory():
    return SessionLocal


@pytest.fixture
def links(session_factory):
    return LinkLifecycleManager(session_factory, CodeGenerator())


@pytest.fixture
def add_link(session_factory):
    """Insert a link row directly, bypassing code generation."""

    def _add(
        code: str,
        amount: str = "150.00",
        owner_id: str | None = None,
        is_active: bool = True,
        access_count: int = 0,
        description: str | None = None,
    ):
        with session_factory() as db:
            link = PaymentLink(
                code=code,
                amount=Decimal(amount),
                owner_id=owner_id,
                is_active=is_active,
                access_count=access_count,
                description=description,
            )
            db.add(link)
            db.commit()
            return link

    return _add


@pytest.fixture
def add_credentials(session_factory):
    def _add(owner_id: str, public_key: str | None, secret_key: str | None):
        with session_factory() as db:
            db.add(GatewayCredential(owner_id=owner_id, public_key=public_key, secret_key=secret_key))
            db.commit()

    return _add


class ScriptedGateway:
    """httpx transport that records requests and replays one canned response."""

    def __init__(self, status_code: int = 200, body=None, raw: str | None = None, error: Exception | None = None):
        self.status_code = status_code
        self.body = {"id": "tx-1", "pix": {"qrcode": "00020126PIXCODE"}} if body is None else body
        self.raw = raw
        self.error = error
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.raw is not None:
            return httpx.Response(self.status_code, text=self.raw)
        return httpx.Response(self.status_code, json=self.body)

    @property
    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def sent_json(self, index: int = -1) -> dict:
        return json.loads(self.requests[index].content)


@pytest.fixture
def scripted_gateway():
    return ScriptedGateway


@pytest.fixture
def gateway_client():
    def _build(scripted: ScriptedGateway, **kwargs) -> GatewayClient:
        return GatewayClient("https://gateway.test", transport=scripted.transport, **kwargs)

    return _build
