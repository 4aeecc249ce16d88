from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from ..errors import InvalidTransition, PaymentGatewayError
from ..helpers import clean_str
from ..payments import PENDING
from ..state import AppState, get_state

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["payment"])


def _conflict(e: InvalidTransition) -> JSONResponse:
    logger.warning("payment_transition_rejected", order_id=e.order_id, current=e.current, requested=e.requested)
    return JSONResponse({"success": False, "message": str(e)}, status_code=409)


@router.post("/connection_token")
async def connection_token(ctx: AppState = Depends(get_state)):
    try:
        secret = await ctx.gateway.create_connection_token()
    except PaymentGatewayError:
        return JSONResponse({"error": "Could not create connection token"}, status_code=500)
    return {"secret": secret}


@router.post("/create-payment-intent")
async def create_payment_intent(payload: dict, ctx: AppState = Depends(get_state)):
    order_id = clean_str(payload.get("orderId"))
    amount = payload.get("amount")

    if not order_id:
        return JSONResponse({"success": False, "message": "orderId is required."}, status_code=400)
    if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
        return JSONResponse({"success": False, "message": "amount must be a positive integer (cents)."}, status_code=400)

    try:
        ctx.payment_machine.check(order_id, PENDING)
    except InvalidTransition as e:
        return _conflict(e)

    metadata = {"orderId": order_id}
    if payload.get("kiosk") is not None:
        metadata["kiosk"] = clean_str(payload["kiosk"])
    if payload.get("orderType"):
        metadata["orderType"] = clean_str(payload["orderType"])
    items = payload.get("items")
    if isinstance(items, list) and items:
        metadata["items"] = str(len(items))

    try:
        intent = await ctx.gateway.create_payment_intent(amount, metadata)
    except PaymentGatewayError as e:
        return JSONResponse({"success": False, "message": "Could not create payment intent.", "error": str(e)}, status_code=500)

    # another request may have moved this order while the gateway call was in flight
    try:
        ctx.payment_machine.intent_created(order_id, amount)
    except InvalidTransition as e:
        return _conflict(e)

    return {"success": True, "clientSecret": intent["client_secret"], "orderId": order_id, "status": PENDING}


@router.post("/payment/cancel")
async def cancel_payment(payload: dict, ctx: AppState = Depends(get_state)):
    order_id = clean_str(payload.get("orderId"))
    if not order_id:
        return JSONResponse({"success": False, "message": "orderId is required."}, status_code=400)
    try:
        ctx.payment_machine.cancel(order_id)
    except InvalidTransition as e:
        return _conflict(e)
    return {"success": True, "message": f"Payment for {order_id} cancelled."}


@router.post("/payment/confirm")
async def confirm_payment(payload: dict, ctx: AppState = Depends(get_state)):
    order_id = clean_str(payload.get("orderId"))
    if not order_id:
        return JSONResponse({"success": False, "message": "orderId is required."}, status_code=400)
    try:
        ctx.payment_machine.confirm(order_id)
    except InvalidTransition as e:
        return _conflict(e)
    return {"success": True, "message": f"Payment for {order_id} confirmed."}


@router.post("/payment/status")
async def push_payment_status(payload: dict, ctx: AppState = Depends(get_state)):
    order_id = clean_str(payload.get("orderId"))
    status = clean_str(payload.get("status"))
    if not order_id or not status:
        return JSONResponse({"success": False, "message": "orderId and status are required."}, status_code=400)
    try:
        ctx.payment_machine.push(order_id, status, clean_str(payload.get("message")))
    except InvalidTransition as e:
        return _conflict(e)
    return {"success": True}


@router.get("/debug/payment-status")
async def debug_payment_status(ctx: AppState = Depends(get_state)):
    return ctx.payment_status.dump_all()
