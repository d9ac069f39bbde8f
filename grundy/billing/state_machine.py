from datetime import datetime

from grundy.domain.orders import Order, OrderStatus, PaymentMethod, utcnow
from grundy.errors import StateConflictError


class InvalidStateTransition(StateConflictError):
    pass


# Position in the lifecycle; status may never move to a lower rank.
STATUS_RANK = {
    OrderStatus.PENDING: 0,
    OrderStatus.PAID: 1,
    OrderStatus.AUTHORIZED: 1,
    OrderStatus.COMPLETED: 2,
}

ALLOWED_TRANSITIONS = {
    (PaymentMethod.STANDARD, OrderStatus.PENDING): OrderStatus.PAID,
    (PaymentMethod.STANDARD, OrderStatus.PAID): OrderStatus.COMPLETED,
    (PaymentMethod.PAY_ON_DELIVERY, OrderStatus.PENDING): OrderStatus.AUTHORIZED,
    (PaymentMethod.PAY_ON_DELIVERY, OrderStatus.AUTHORIZED): OrderStatus.COMPLETED,
}

TIMESTAMP_FIELDS = {
    OrderStatus.PAID: "paid_at",
    OrderStatus.AUTHORIZED: "authorized_at",
    OrderStatus.COMPLETED: "completed_at",
}


class OrderStateMachine:
    """
    Authoritative order state machine.

    This class is the ONLY place where an order's status changes:

        standard:         pending -> paid       -> completed
        pay-on-delivery:  pending -> authorized -> completed

    Every method mutates the given order in place and returns True when a
    transition fired. Repeating a transition the order already made is a
    no-op that returns False and leaves timestamps alone. Anything else that
    is not an allowed edge raises InvalidStateTransition without touching
    the order.
    """

    @staticmethod
    def next_status(order: Order) -> OrderStatus | None:
        return ALLOWED_TRANSITIONS.get((order.method, order.status))

    @staticmethod
    def can_transition(order: Order, target: OrderStatus) -> bool:
        return OrderStateMachine.next_status(order) == target

    @staticmethod
    def transition(order: Order, target: OrderStatus, *, at: datetime | None = None) -> bool:
        if order.status == target:
            return False

        if STATUS_RANK[target] < STATUS_RANK[order.status]:
            raise InvalidStateTransition(
                f"Order {order.id} cannot move back from {order.status.value} "
                f"to {target.value}"
            )

        if not OrderStateMachine.can_transition(order, target):
            raise InvalidStateTransition(
                f"Order {order.id} ({order.method.value}) cannot move from "
                f"{order.status.value} to {target.value}"
            )

        order.status = target
        setattr(order, TIMESTAMP_FIELDS[target], at or utcnow())
        return True

    @staticmethod
    def mark_paid(order: Order) -> bool:
        return OrderStateMachine.transition(order, OrderStatus.PAID)

    @staticmethod
    def mark_authorized(order: Order, authorization_code: str) -> bool:
        if not authorization_code:
            raise InvalidStateTransition("Authorization requires an authorization code")

        changed = OrderStateMachine.transition(order, OrderStatus.AUTHORIZED)
        if changed:
            order.authorization_code = authorization_code
        return changed

    @staticmethod
    def mark_charged(order: Order) -> bool:
        """
        Pay-on-delivery completion. Only call after the gateway reported the
        charge as successful.
        """
        if order.method != PaymentMethod.PAY_ON_DELIVERY:
            raise InvalidStateTransition(
                f"Order {order.id} has no stored authorization to charge"
            )

        now = utcnow()
        changed = OrderStateMachine.transition(order, OrderStatus.COMPLETED, at=now)
        if changed:
            order.charged_at = now
        return changed

    @staticmethod
    def mark_completed(order: Order) -> bool:
        if order.method != PaymentMethod.STANDARD:
            raise InvalidStateTransition(
                f"Order {order.id} must be charged before it can complete"
            )
        return OrderStateMachine.transition(order, OrderStatus.COMPLETED)
