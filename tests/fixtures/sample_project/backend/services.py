"""Order and user services."""

from typing import List, Optional

from .models import Order, Customer
from .utils import calculate_total, validate_email


class BaseProcessor:
    """Common bookkeeping for processors."""

    def reset(self) -> None:
        self.items = []


class OrderService(BaseProcessor):
    """Create and look up orders."""

    orders: List[Order]
    owner: Optional[Customer] = None

    def __init__(self):
        self.orders = []

    def place(
        self,
        customer: Customer,
        items: List[float],
    ) -> Optional[Order]:
        """Place an order for an active customer."""
        if not customer.is_active or not validate_email(customer.email):
            return None
        order = Order(id=len(self.orders) + 1, user_id=customer.id, items=items)
        self.orders.append(order)
        return order

    def find(self, order_id: int) -> Optional[Order]:
        for order in self.orders:
            if order.id == order_id:
                return order
        return None


def order_total(order: Order) -> float:
    """Total of one order including tax."""
    return calculate_total(order.items)
