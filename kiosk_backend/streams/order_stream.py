from fastapi import APIRouter, Depends

from ..state import AppState, get_state
from .sse import sse_response

router = APIRouter()


@router.get("/admin/notifications")
async def order_notifications(ctx: AppState = Depends(get_state)):
    return sse_response(ctx.order_feed, ctx.settings.feed_keepalive_seconds)
