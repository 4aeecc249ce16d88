import time
from datetime import datetime, timezone
from typing import Optional, Tuple

ORDER_TYPES = ("takeaway", "pickup", "quote")
ORDER_PREFIXES = {"takeaway": "ORD", "pickup": "ORD", "quote": "QUO"}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderIdFactory:
    """``<prefix>-<epoch millis>`` ids that never repeat or go backwards within a process."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._last = 0

    def next_id(self, order_type: str) -> str:
        millis = int(self._clock() * 1000)
        if millis <= self._last:
            millis = self._last + 1
        self._last = millis
        return f"{ORDER_PREFIXES.get(order_type, 'ORD')}-{millis}"


def clean_str(value) -> str:
    return str(value).strip() if value is not None else ""


def validate_order(payload: dict) -> Tuple[Optional[str], Optional[dict]]:
    """Returns ``(error, fields)``; exactly one of them is ``None``."""
    producten = payload.get("producten")
    if not isinstance(producten, list) or not producten:
        return "No products given.", None

    order_type = clean_str(payload.get("type"))
    if order_type not in ORDER_TYPES:
        return f"type must be one of {', '.join(ORDER_TYPES)}.", None

    kiosk = payload.get("kiosk")
    # quote requests may come from the web form, without a kiosk
    kiosk_optional = order_type == "quote" and kiosk is None
    if not kiosk_optional and (isinstance(kiosk, bool) or not isinstance(kiosk, int)):
        return "kiosk is required and must be a number.", None

    lines = []
    for i, p in enumerate(producten):
        if not isinstance(p, dict):
            return f"producten[{i}] must be an object.", None
        item = clean_str(p.get("item"))
        quantity = p.get("quantity")
        if not item:
            return f"producten[{i}].item is required.", None
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            return f"producten[{i}].quantity must be a positive integer.", None
        line = {"item": item, "quantity": quantity}
        opmerking = clean_str(p.get("opmerking"))
        if opmerking:
            line["opmerking"] = opmerking
        lines.append(line)

    return None, {"type": order_type, "kiosk": kiosk, "producten": lines}


def order_event(order: dict) -> dict:
    return {
        "orderId": order["orderId"],
        "type": order["type"],
        "kiosk": order.get("kiosk"),
        "producten": order["producten"],
        "status": order["status"],
        "createdAt": order["createdAt"],
    }
