from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
import structlog

from ..errors import InvalidTransition, WebhookSignatureError
from ..helpers import clean_str
from ..state import AppState, get_state

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["webhook"])


def _failure_reason(intent: dict) -> str:
    error = intent.get("last_payment_error") or {}
    return error.get("message") or "Payment failed"


@router.post("/webhook")
async def stripe_webhook(request: Request, ctx: AppState = Depends(get_state)):
    payload = await request.body()
    signature = request.headers.get("stripe-signature")

    try:
        event = ctx.gateway.verify_webhook(payload, signature)
    except WebhookSignatureError as e:
        return JSONResponse({"error": f"Webhook error: {e}"}, status_code=400)

    event_type = event["type"]
    intent = (event.get("data") or {}).get("object") or {}
    order_id = clean_str((intent.get("metadata") or {}).get("orderId"))

    if event_type not in ("payment_intent.succeeded", "payment_intent.payment_failed"):
        logger.debug("webhook_event_ignored", event_id=event.get("id"), event_type=event_type)
        return {"received": True}

    if not order_id:
        logger.warning("webhook_without_order_id", event_id=event.get("id"), event_type=event_type, payment_intent_id=intent.get("id"))
        return {"received": True}

    try:
        if event_type == "payment_intent.succeeded":
            ctx.payment_machine.gateway_succeeded(order_id)
        else:
            ctx.payment_machine.gateway_failed(order_id, _failure_reason(intent))
    except InvalidTransition as e:
        # acknowledged so Stripe stops retrying; the store keeps its current status
        logger.warning("webhook_transition_rejected", order_id=order_id, current=e.current, requested=e.requested)

    return {"received": True}
