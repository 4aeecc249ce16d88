from html import escape

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse
import structlog

from ..errors import OrderStorageError
from ..state import AppState, get_state
from ..templates.admin import ADMIN_HTML_TEMPLATE, ADMIN_ROW_TEMPLATE

logger = structlog.get_logger(__name__)

router = APIRouter()


def render_rows(orders: list) -> str:
    rows = []
    for o in orders:
        for p in o["producten"]:
            rows.append(
                ADMIN_ROW_TEMPLATE.format(
                    order_id=escape(o["orderId"]),
                    type=escape(o["type"]),
                    kiosk="" if o.get("kiosk") is None else o["kiosk"],
                    item=escape(p["item"]),
                    quantity=p["quantity"],
                    opmerking=escape(p.get("opmerking") or ""),
                    created=f"{o['createdAt']:%Y-%m-%d %H:%M:%S}",
                    status=escape(o["status"]),
                )
            )
    return "\n".join(rows)


@router.get("/admin", response_class=HTMLResponse)
async def admin_page(ctx: AppState = Depends(get_state)) -> HTMLResponse:
    try:
        orders = await ctx.orders.find()
    except OrderStorageError as e:
        logger.error("orders_fetch_failed", error=str(e))
        return HTMLResponse("Could not load orders.", status_code=500)

    html = (
        ADMIN_HTML_TEMPLATE
        .replace("__COUNT__", str(len(orders)))
        .replace("__ROWS__", render_rows(orders))
    )
    return HTMLResponse(html)


@router.get("/health")
async def health(ctx: AppState = Depends(get_state)):
    return {
        "status": "ok",
        "orderSubscribers": len(ctx.order_feed),
        "paymentSubscribers": len(ctx.payment_feed),
    }
