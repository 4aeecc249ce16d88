"""
Pytest configuration and fixtures.
"""
import hashlib
import hmac
import json
import time
from typing import Any, AsyncGenerator, Dict, List

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from kiosk_backend.config import Settings
from kiosk_backend.errors import PaymentGatewayError
from kiosk_backend.gateway import StripeGateway
from kiosk_backend.main import create_app
from kiosk_backend.mailer import OrderMailer
from kiosk_backend.state import AppState, build_state

WEBHOOK_SECRET = "whsec_test_fake_secret"


class FakeGateway(StripeGateway):
    """Real webhook verification, canned answers for the API calls."""

    def __init__(self) -> None:
        super().__init__(secret_key="sk_test_fake", webhook_secret=WEBHOOK_SECRET)
        self.intents: List[Dict[str, Any]] = []
        self.fail_with: Exception = None

    async def create_payment_intent(self, amount: int, metadata: Dict[str, str]) -> Dict[str, Any]:
        if self.fail_with:
            raise self.fail_with
        intent_id = f"pi_test_{len(self.intents) + 1}"
        self.intents.append({"amount": amount, "metadata": dict(metadata)})
        return {"id": intent_id, "client_secret": f"{intent_id}_secret_abc", "status": "requires_payment_method"}

    async def create_connection_token(self) -> str:
        if self.fail_with:
            raise self.fail_with
        return "pst_test_token"


class FakeMailer(OrderMailer):
    def __init__(self, settings: Settings) -> None:
        super().__init__(settings)
        self.sent: List[dict] = []
        self.fail = False

    @property
    def enabled(self) -> bool:
        return True

    async def send_order_confirmation(self, order: dict) -> bool:
        if self.fail:
            raise ConnectionRefusedError("smtp down")
        self.sent.append(order)
        return True


def sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    timestamp = int(time.time()) if timestamp is None else timestamp
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def stripe_event(event_type: str, order_id: str = None, **intent_fields: Any) -> str:
    intent = {"id": "pi_test_1", "object": "payment_intent", "metadata": {}}
    if order_id is not None:
        intent["metadata"]["orderId"] = order_id
    intent.update(intent_fields)
    return json.dumps({"id": "evt_test_1", "object": "event", "type": event_type, "data": {"object": intent}})


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        _env_file=None,
        app_name="kiosk-backend-test",
        app_env="test",
        log_level="DEBUG",
        stripe_secret_key="sk_test_fake",
        stripe_webhook_secret=WEBHOOK_SECRET,
        feed_max_pending=5,
        feed_keepalive_seconds=0,
    )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def mailer(test_settings: Settings) -> FakeMailer:
    return FakeMailer(test_settings)


@pytest.fixture
def ctx(test_settings: Settings, gateway: FakeGateway, mailer: FakeMailer) -> AppState:
    return build_state(test_settings, gateway=gateway, mailer=mailer)


@pytest.fixture
def app(ctx: AppState):
    return create_app(state=ctx)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, Any]:
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sample_order() -> dict:
    return {"producten": [{"item": "Cola", "quantity": 2}], "type": "takeaway", "kiosk": 3}
