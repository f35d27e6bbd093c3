"""Order status updates - command and handler.

The handler runs inside a unit of work: the order is read, checked against
the status the caller last saw, transitioned and written back in one go.
"""

from protean import handle
from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from orders.domain import orders, logger
from orders.errors import Conflict, NotFound
from orders.order.order import Actor, Order, OrderStatus


@orders.command(part_of="Order")
class UpdateOrderStatus:
    """Move an order to a new status on behalf of a user, seller or admin."""

    order_id = Identifier(required=True)
    status = String(required=True, max_length=20)
    note = String(max_length=500)
    cancellation_reason = String(max_length=500)
    return_reason = String(max_length=500)
    expected_status = String(max_length=20)  # Status the caller last saw
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()
    actor_store_id = Identifier()


@orders.command_handler(part_of=Order)
class OrderStatusHandler:
    @handle(UpdateOrderStatus)
    def update_status(self, command):
        repo = current_domain.repository_for(Order)
        try:
            order = repo.get(command.order_id)
        except ObjectNotFoundError:
            raise NotFound(f"Order {command.order_id} not found", identifier=str(command.order_id)) from None

        if command.expected_status and command.expected_status != order.status:
            raise Conflict(
                f"Order is {order.status}, expected {command.expected_status}",
                identifier=str(order.id),
            )

        reason = None
        if command.status == OrderStatus.CANCELLED.value:
            reason = command.cancellation_reason
        elif command.status == OrderStatus.RETURNED.value:
            reason = command.return_reason

        previous = order.status
        order.change_status(
            command.status,
            Actor(role=command.actor_role, id=command.actor_id, store_id=command.actor_store_id),
            note=command.note,
            reason=reason,
        )
        repo.add(order)

        logger.info(
            "Order status updated",
            order_id=str(order.id),
            order_number=order.order_number,
            previous_status=previous,
            status=order.status,
            changed_by=command.actor_role,
        )
        return str(order.id)
