from typing import Optional


class KioskError(Exception):
    """Base class for errors raised by the kiosk backend."""


class OrderStorageError(KioskError):
    """The order or product store could not complete a call."""


class PaymentGatewayError(KioskError):
    """A call to the payment gateway failed."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class WebhookSignatureError(KioskError):
    """A webhook payload could not be verified against the signing secret."""


class InvalidTransition(KioskError):
    """Raised in strict mode when a payment status change is not allowed."""

    def __init__(self, order_id: str, current: Optional[str], requested: str):
        super().__init__(f"Cannot move order {order_id} from {current or 'nothing'} to {requested}")
        self.order_id = order_id
        self.current = current
        self.requested = requested
