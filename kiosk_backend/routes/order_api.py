from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
import structlog

from ..errors import OrderStorageError
from ..helpers import clean_str, order_event, utcnow, validate_order
from ..state import AppState, get_state

logger = structlog.get_logger(__name__)

router = APIRouter(tags=["orders"])


@router.get("/products")
async def list_products(ctx: AppState = Depends(get_state)):
    try:
        return await ctx.products.find()
    except OrderStorageError as e:
        logger.error("products_fetch_failed", error=str(e))
        return JSONResponse({"message": "Could not load products."}, status_code=500)


@router.post("/order")
async def place_order(payload: dict, ctx: AppState = Depends(get_state)):
    error, fields = validate_order(payload)
    if error:
        return JSONResponse({"message": error}, status_code=400)

    order = {
        "orderId": ctx.order_ids.next_id(fields["type"]),
        **fields,
        "status": "new",
        "createdAt": utcnow(),
    }

    try:
        order = await ctx.orders.insert(order)
    except OrderStorageError as e:
        logger.error("order_save_failed", order_id=order["orderId"], error=str(e))
        return JSONResponse({"message": "Could not save order.", "error": str(e)}, status_code=500)

    delivered = ctx.order_broadcaster.broadcast(order_event(order))
    logger.info("order_placed", order_id=order["orderId"], type=order["type"], kiosk=order["kiosk"], subscribers=delivered)

    ctx.tasks.spawn(ctx.mailer.send_order_confirmation(order), name=f"order-mail-{order['orderId']}")

    return {"message": "Order placed.", "order": order}


@router.patch("/admin/order/{order_id}/status")
async def update_order_status(order_id: str, payload: dict, ctx: AppState = Depends(get_state)):
    status = clean_str(payload.get("status"))
    if not status:
        return JSONResponse({"message": "status is required."}, status_code=400)

    try:
        order = await ctx.orders.update_status(order_id, status)
    except OrderStorageError as e:
        logger.error("order_status_update_failed", order_id=order_id, error=str(e))
        return JSONResponse({"message": "Could not update status.", "error": str(e)}, status_code=500)

    if not order:
        return JSONResponse({"message": "Order not found."}, status_code=404)

    logger.info("order_status_updated", order_id=order_id, status=status)
    return {"message": "Status updated", "status": order["status"]}


@router.get("/admin/orders")
async def admin_orders(ctx: AppState = Depends(get_state)):
    try:
        return {"orders": await ctx.orders.find()}
    except OrderStorageError as e:
        logger.error("orders_fetch_failed", error=str(e))
        return JSONResponse({"message": "Could not load orders."}, status_code=500)
