"""Repository for the Order aggregate."""

from production.domain import production
from production.errors import InvalidRequest, NotFound
from production.order.order import Order
from production.shared.enums import OrderStatus

_QUERY_LIMIT = 10_000

ORDER_TYPES = ("all", "pending", "completed")


@production.repository(part_of=Order)
class OrderRepository:
    def find_by_number(self, order_number: str) -> Order | None:
        return self._dao.query.filter(order_number=order_number).all().first

    def get_by_number(self, order_number: str) -> Order:
        order = self.find_by_number(order_number)
        if order is None:
            raise NotFound("Order", order_number)
        return order

    def find_by_type(self, order_type: str = "all") -> list[Order]:
        """Orders newest first. ``pending`` means anything not yet Completed."""
        if order_type not in ORDER_TYPES:
            raise InvalidRequest({"order_type": [f"order_type must be one of {', '.join(ORDER_TYPES)}"]})

        query = self._dao.query
        if order_type == "completed":
            query = query.filter(order_status=OrderStatus.COMPLETED.value)
        elif order_type == "pending":
            query = query.exclude(order_status=OrderStatus.COMPLETED.value)
        return query.order_by("-created_at").limit(_QUERY_LIMIT).all().items
