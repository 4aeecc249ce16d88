"""In-memory order and product stores.

They stand in for the document database: every call is a coroutine so
handlers treat them as suspension points, and failures surface as
``OrderStorageError``.
"""
import copy
from typing import Dict, List, Optional

from .errors import OrderStorageError


class OrderStore:
    def __init__(self):
        self._orders: Dict[str, dict] = {}   # order_id -> order

    async def insert(self, order: dict) -> dict:
        order_id = order.get("orderId")
        if not order_id:
            raise OrderStorageError("order without orderId")
        if order_id in self._orders:
            raise OrderStorageError(f"duplicate orderId {order_id}")
        self._orders[order_id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    async def find(self) -> List[dict]:
        out = [copy.deepcopy(o) for o in self._orders.values()]
        out.sort(key=lambda o: o["createdAt"], reverse=True)
        return out

    async def update_status(self, order_id: str, status: str) -> Optional[dict]:
        o = self._orders.get(order_id)
        if not o:
            return None
        o["status"] = status
        return copy.deepcopy(o)


DEMO_PRODUCTS = [
    {"naam": "Cola", "prijs": 2.5, "image": ""},
    {"naam": "Friet", "prijs": 3.0, "image": ""},
    {"naam": "Kroket", "prijs": 2.75, "image": ""},
    {"naam": "Koffie", "prijs": 2.2, "image": ""},
]


class ProductStore:
    def __init__(self, products: Optional[List[dict]] = None):
        self._products: List[dict] = copy.deepcopy(DEMO_PRODUCTS if products is None else products)

    async def find(self) -> List[dict]:
        return copy.deepcopy(self._products)
