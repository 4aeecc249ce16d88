from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from .config import Settings
from .feeds import Broadcaster, SubscriberRegistry
from .gateway import StripeGateway
from .helpers import OrderIdFactory
from .mailer import OrderMailer
from .payments import PaymentStateMachine, PaymentStatusStore
from .storage import OrderStore, ProductStore
from .tasks import TaskRunner


@dataclass
class AppState:
    """Everything the handlers share. One instance per app, attached to ``app.state.kiosk``."""

    settings: Settings
    gateway: StripeGateway
    mailer: OrderMailer
    orders: OrderStore = field(default_factory=OrderStore)
    products: ProductStore = field(default_factory=ProductStore)
    tasks: TaskRunner = field(default_factory=TaskRunner)
    order_ids: OrderIdFactory = field(default_factory=OrderIdFactory)
    order_feed: SubscriberRegistry = None
    payment_feed: SubscriberRegistry = None
    payment_status: PaymentStatusStore = field(default_factory=PaymentStatusStore)
    payment_machine: PaymentStateMachine = None
    order_broadcaster: Broadcaster = None

    def __post_init__(self):
        max_pending = self.settings.feed_max_pending
        if self.order_feed is None:
            self.order_feed = SubscriberRegistry("orders", max_pending)
        if self.payment_feed is None:
            self.payment_feed = SubscriberRegistry("payments", max_pending)
        if self.order_broadcaster is None:
            self.order_broadcaster = Broadcaster(self.order_feed)
        if self.payment_machine is None:
            self.payment_machine = PaymentStateMachine(
                self.payment_status,
                Broadcaster(self.payment_feed),
                strict=self.settings.strict_payment_transitions,
            )


def build_state(
    settings: Settings,
    gateway: Optional[StripeGateway] = None,
    mailer: Optional[OrderMailer] = None,
) -> AppState:
    if gateway is None:
        gateway = StripeGateway(
            secret_key=settings.stripe_secret_key,
            webhook_secret=settings.stripe_webhook_secret,
            currency=settings.currency,
            payment_method_types=settings.get_payment_method_types_list(),
            webhook_tolerance=settings.webhook_tolerance_seconds,
        )
    return AppState(settings=settings, gateway=gateway, mailer=mailer or OrderMailer(settings))


def get_state(request: Request) -> AppState:
    return request.app.state.kiosk
