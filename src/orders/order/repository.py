"""Order repository with the lookups placement and the read side need."""

from orders.domain import orders
from orders.order.order import Order

_PAGE_SIZE = 100


@orders.repository(part_of=Order)
class OrderRepository:
    def with_number(self, order_number: str) -> Order | None:
        found = self._dao.query.filter(order_number=order_number).all().items
        return found[0] if found else None

    def number_taken(self, order_number: str) -> bool:
        return self.with_number(order_number) is not None

    def matching(self, **criteria) -> list[Order]:
        """All orders matching the equality ``criteria``, across result pages."""
        found = []
        offset = 0
        while True:
            query = self._dao.query
            if criteria:
                query = query.filter(**criteria)
            page = query.offset(offset).limit(_PAGE_SIZE).all().items
            found.extend(page)
            if len(page) < _PAGE_SIZE:
                return found
            offset += _PAGE_SIZE
