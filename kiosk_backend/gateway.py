"""Thin wrapper around the Stripe SDK.

Only three things are needed from Stripe: creating a payment intent,
creating a terminal connection token, and verifying webhook payloads.
The SDK is blocking, so API calls run in Starlette's threadpool. Calls
are attempted once; failures become ``PaymentGatewayError``.
"""
from typing import Any, Dict, List, Optional, Union

import stripe
import structlog
from starlette.concurrency import run_in_threadpool

from .errors import PaymentGatewayError, WebhookSignatureError

logger = structlog.get_logger(__name__)


class StripeGateway:
    def __init__(
        self,
        secret_key: str,
        webhook_secret: str,
        currency: str = "eur",
        payment_method_types: Optional[List[str]] = None,
        webhook_tolerance: int = 300,
    ):
        self.secret_key = secret_key
        self.webhook_secret = webhook_secret
        self.currency = currency.lower()
        self.payment_method_types = payment_method_types or ["card_present"]
        self.webhook_tolerance = webhook_tolerance

    async def create_payment_intent(self, amount: int, metadata: Dict[str, str]) -> Dict[str, Any]:
        logger.info("creating_payment_intent", amount=amount, currency=self.currency, order_id=metadata.get("orderId"))

        def _create() -> stripe.PaymentIntent:
            return stripe.PaymentIntent.create(
                api_key=self.secret_key,
                amount=amount,
                currency=self.currency,
                payment_method_types=self.payment_method_types,
                capture_method="automatic",
                metadata=metadata,
            )

        try:
            intent = await run_in_threadpool(_create)
        except stripe.StripeError as e:
            logger.error("stripe_api_error", operation="create_payment_intent", error_code=e.code, error=str(e))
            raise PaymentGatewayError(str(e), code=e.code) from e

        logger.info("payment_intent_created", payment_intent_id=intent.id, status=intent.status)
        return {"id": intent.id, "client_secret": intent.client_secret, "status": intent.status}

    async def create_connection_token(self) -> str:
        def _create() -> stripe.terminal.ConnectionToken:
            return stripe.terminal.ConnectionToken.create(api_key=self.secret_key)

        try:
            token = await run_in_threadpool(_create)
        except stripe.StripeError as e:
            logger.error("stripe_api_error", operation="create_connection_token", error_code=e.code, error=str(e))
            raise PaymentGatewayError(str(e), code=e.code) from e
        return token.secret

    def verify_webhook(self, payload: Union[bytes, str], signature: Optional[str]) -> Dict[str, Any]:
        """Check the ``Stripe-Signature`` header and return the event as plain dicts.

        Raises ``WebhookSignatureError`` when the header is missing, the
        signature or timestamp does not check out, or the body is not JSON.
        """
        try:
            event = stripe.Webhook.construct_event(
                payload=payload,
                sig_header=signature,
                secret=self.webhook_secret,
                tolerance=self.webhook_tolerance,
                api_key=self.secret_key,
            )
        except stripe.SignatureVerificationError as e:
            logger.warning("webhook_signature_invalid", error=str(e))
            raise WebhookSignatureError(f"Invalid webhook signature: {e}") from e
        except ValueError as e:
            logger.warning("webhook_payload_invalid", error=str(e))
            raise WebhookSignatureError(f"Invalid webhook payload: {e}") from e

        logger.info("webhook_signature_verified", event_id=event.id, event_type=event.type)
        return event.to_dict()
