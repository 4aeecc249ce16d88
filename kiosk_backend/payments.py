"""Payment status store and the state machine that every payment producer goes through.

Three producers change a payment's status: the intent creation call, the
manual confirm/cancel buttons (plus the terminal's status push), and the
Stripe webhook. They all end up in ``PaymentStateMachine``, which
overwrites the entry in ``PaymentStatusStore`` and broadcasts the result
on the payment feed.

Overwrites are unconditional unless the machine runs in strict mode. A
new intent for an order always restarts it at ``pending``, and a manual
confirm marks an order paid without asking the gateway.
"""
from dataclasses import asdict, dataclass
from typing import Dict, Optional

import structlog

from .errors import InvalidTransition
from .feeds import Broadcaster

logger = structlog.get_logger(__name__)

PENDING = "pending"
PAID = "paid"
CANCELLED = "cancelled"
FAILED = "failed"

STATUSES = (PENDING, PAID, CANCELLED, FAILED)
TERMINAL_STATUSES = (PAID, CANCELLED, FAILED)

# strict mode only: current status -> statuses it may move to
ALLOWED_TRANSITIONS: Dict[Optional[str], frozenset] = {
    None: frozenset({PENDING}),
    PENDING: frozenset(STATUSES),
    **{s: frozenset({PENDING}) for s in TERMINAL_STATUSES},
}


@dataclass(frozen=True)
class PaymentStatusEntry:
    status: str
    message: str = ""

    def to_dict(self) -> dict:
        return asdict(self)


class PaymentStatusStore:
    """In-memory order id -> latest payment status. Lost on restart."""

    def __init__(self):
        self._entries: Dict[str, PaymentStatusEntry] = {}

    def get(self, order_id: str) -> Optional[PaymentStatusEntry]:
        return self._entries.get(order_id)

    def set(self, order_id: str, status: str, message: str = "") -> PaymentStatusEntry:
        entry = PaymentStatusEntry(status=status, message=message)
        self._entries[order_id] = entry
        return entry

    def dump_all(self) -> Dict[str, dict]:
        return {order_id: entry.to_dict() for order_id, entry in self._entries.items()}

    def __contains__(self, order_id: str) -> bool:
        return order_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)


class PaymentStateMachine:
    def __init__(self, store: PaymentStatusStore, broadcaster: Broadcaster, strict: bool = False):
        self.store = store
        self.broadcaster = broadcaster
        self.strict = strict

    def check(self, order_id: str, status: str) -> None:
        """Raise ``InvalidTransition`` if strict mode forbids moving to ``status``."""
        if not self.strict:
            return
        current = self.store.get(order_id)
        current_status = current.status if current else None
        if status not in ALLOWED_TRANSITIONS.get(current_status, frozenset()):
            raise InvalidTransition(order_id, current_status, status)

    def _apply(self, order_id: str, status: str, message: str, source: str) -> PaymentStatusEntry:
        self.check(order_id, status)
        entry = self.store.set(order_id, status, message)
        logger.info("payment_status_changed", order_id=order_id, status=status, source=source)
        self.broadcaster.broadcast({"orderId": order_id, "status": status, "message": message})
        return entry

    def intent_created(self, order_id: str, amount: int) -> PaymentStatusEntry:
        self.check(order_id, PENDING)
        self.broadcaster.broadcast({"orderId": order_id, "amount": amount, "status": PENDING})
        return self._apply(order_id, PENDING, "Waiting for payment", source="intent")

    def cancel(self, order_id: str) -> PaymentStatusEntry:
        return self._apply(order_id, CANCELLED, "Payment cancelled", source="manual")

    def confirm(self, order_id: str) -> PaymentStatusEntry:
        return self._apply(order_id, PAID, "Payment confirmed manually", source="manual")

    def push(self, order_id: str, status: str, message: str = "") -> PaymentStatusEntry:
        if self.strict and status not in STATUSES:
            current = self.store.get(order_id)
            raise InvalidTransition(order_id, current.status if current else None, status)
        return self._apply(order_id, status, message, source="terminal")

    def gateway_succeeded(self, order_id: str) -> PaymentStatusEntry:
        return self._apply(order_id, PAID, "Payment succeeded", source="webhook")

    def gateway_failed(self, order_id: str, reason: str) -> PaymentStatusEntry:
        return self._apply(order_id, FAILED, reason, source="webhook")
