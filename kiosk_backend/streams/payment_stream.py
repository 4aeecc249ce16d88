from fastapi import APIRouter, Depends

from ..state import AppState, get_state
from .sse import sse_response

router = APIRouter()


@router.get("/payment/notifications")
async def payment_notifications(ctx: AppState = Depends(get_state)):
    return sse_response(ctx.payment_feed, ctx.settings.feed_keepalive_seconds)
