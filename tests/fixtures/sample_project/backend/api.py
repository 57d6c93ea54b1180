"""HTTP routes for the order backend."""

from fastapi import APIRouter

from .services import OrderService, order_total

router = APIRouter()


@router.get("/orders/{order_id}")
def read_order(order_id: int):
    """Return one order with its total."""
    service = OrderService()
    order = service.find(order_id)
    return {"id": order.id, "total": order_total(order)}
