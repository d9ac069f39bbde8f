import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone

from grundy.billing.state_machine import InvalidStateTransition, OrderStateMachine
from grundy.domain.orders import (
    CustomerInfo,
    Order,
    OrderStatus,
    PaymentMethod,
    Transaction,
    TransactionStatus,
    cart_total,
    parse_cart,
    to_major_units,
    utcnow,
)
from grundy.errors import (
    GatewayError,
    NotFoundError,
    StateConflictError,
    ValidationError,
)
from grundy.observability.metrics import MetricsManager

logger = logging.getLogger(__name__)

CARD_ONLY = ["card"]


@dataclass
class CheckoutResult:
    reference: str
    authorization_url: str
    order: Order


@dataclass
class VerificationResult:
    reference: str
    status: str
    order: Order | None
    verified: bool = False

    @property
    def success(self) -> bool:
        return self.status == "success" and self.verified


@dataclass
class DeliveryResult:
    order: Order
    completed: bool
    gateway_status: str | None = None


@dataclass
class CheckoutService:
    """
    Every payment flow of the storefront, against one repository and one
    gateway:

    * checkout         - create a pending order and a hosted payment page
    * verify           - reconcile a reference with the gateway
    * authorize        - record a pay-on-delivery card authorization
    * confirm_delivery - capture or complete an order once it is delivered

    All status changes go through OrderStateMachine while holding the
    repository's per-order lock, and are written back with compare-and-set.
    """

    repository: object
    gateway: object
    fulfillment: object
    callback_url: str
    recovery_enabled: bool = True
    lock_timeout: float = 10.0
    metrics: MetricsManager = field(default_factory=MetricsManager)

    # ---------- Checkout ----------
    def checkout(self, cart, customer_info, method=None) -> CheckoutResult:
        items = parse_cart(cart)
        customer = CustomerInfo.from_dict(customer_info)
        payment_method = PaymentMethod.parse(method)

        order = Order.create(items, customer, payment_method)
        self.repository.add(order)
        self.metrics.record_order_created(payment_method.value)

        logger.info(
            "Order created",
            extra={"order_id": order.id, "method": payment_method.value,
                   "amount_minor": order.total_minor_units},
        )

        metadata = {
            "orderId": order.id,
            "method": payment_method.value,
            "customerInfo": customer.to_dict(),
            "cart": [item.to_dict() for item in items],
        }

        try:
            data = self.gateway.initialize_transaction(
                amount=order.total_minor_units,
                email=customer.email,
                reference=order.id,
                callback_url=self.callback_url,
                metadata=metadata,
                channels=CARD_ONLY if payment_method == PaymentMethod.PAY_ON_DELIVERY else None,
            )
        except GatewayError:
            logger.error(
                "Transaction initialization failed, order left pending",
                extra={"order_id": order.id},
            )
            raise

        transaction = Transaction(
            reference=order.id,
            method=payment_method,
            authorization_url=data["authorization_url"],
        )
        self.repository.save_transaction(transaction)

        return CheckoutResult(
            reference=order.id,
            authorization_url=transaction.authorization_url,
            order=order,
        )

    # ---------- Verification ----------
    def verify(self, reference) -> VerificationResult:
        if not reference:
            raise ValidationError("Reference required")

        data = self.gateway.verify_transaction(reference)
        status = str(data.get("status") or "unknown")

        if status != "success":
            logger.info(
                "Payment not successful",
                extra={"reference": reference, "gateway_status": status},
            )
            return VerificationResult(reference, status, self.repository.get(reference))

        amount = data.get("amount")
        if isinstance(amount, bool) or not isinstance(amount, int):
            raise GatewayError("Payment gateway response had no amount")

        changed = False
        with self.repository.lock(reference, self.lock_timeout):
            order = self.repository.get(reference)
            expected = order.status if order else None

            if order is None:
                if not self.recovery_enabled:
                    logger.warning(
                        "Verified payment for unknown order", extra={"reference": reference}
                    )
                    return VerificationResult(reference, status, None)
                order = self._recover_order(reference, data)

            if amount != order.total_minor_units:
                logger.error(
                    "Gateway amount does not match order total",
                    extra={"reference": reference, "gateway_amount": amount,
                           "order_amount": order.total_minor_units},
                )
                return VerificationResult(reference, status, self.repository.get(reference))

            changed = self._apply_verified_payment(order, data)
            if changed or expected is None:
                self.repository.compare_and_set(order, expected)

            self._mark_transaction_verified(reference, order.method)

        if changed:
            self._after_transition(order)

        # A pay-on-delivery payment without a reusable card leaves the order pending
        applied = order.status != OrderStatus.PENDING
        logger.info(
            "Payment verified",
            extra={"reference": reference, "order_status": order.status.value,
                   "applied": applied},
        )
        return VerificationResult(reference, status, order, verified=applied)

    def _apply_verified_payment(self, order, data) -> bool:
        # Verifying an order that already moved on is a no-op
        if order.status != OrderStatus.PENDING:
            return False

        if order.method == PaymentMethod.STANDARD:
            return OrderStateMachine.mark_paid(order)

        authorization = data.get("authorization")
        if not isinstance(authorization, dict):
            authorization = {}
        code = authorization.get("authorization_code")
        if code and authorization.get("reusable"):
            return OrderStateMachine.mark_authorized(order, code)

        logger.warning(
            "Pay-on-delivery payment verified without a reusable authorization",
            extra={"reference": order.id},
        )
        return False

    def _recover_order(self, reference, data) -> Order:
        """
        Rebuild an order this process never saw from what the gateway
        reports. The metadata was written by checkout, but the gateway does
        not vouch for it.
        """
        metadata = data.get("metadata")
        if not isinstance(metadata, dict):
            metadata = {}
        customer_data = metadata.get("customerInfo")
        if not isinstance(customer_data, dict):
            customer_data = {}
        gateway_customer = data.get("customer")
        if not isinstance(gateway_customer, dict):
            gateway_customer = {}

        full_name = " ".join(
            part for part in (gateway_customer.get("first_name"),
                              gateway_customer.get("last_name")) if part
        )
        customer = CustomerInfo(
            name=customer_data.get("name") or full_name or "Customer",
            email=(customer_data.get("email") or gateway_customer.get("email")
                   or "unknown@email.com"),
            phone=customer_data.get("phone") or gateway_customer.get("phone") or None,
            address=customer_data.get("address") or None,
        )

        try:
            method = PaymentMethod.parse(metadata.get("method"))
        except ValidationError:
            method = PaymentMethod.STANDARD

        total = to_major_units(data["amount"])
        try:
            items = parse_cart(metadata.get("cart"))
        except ValidationError:
            items = []
        if items and cart_total(items) != total:
            logger.warning(
                "Recovered cart does not add up to the paid amount, dropping it",
                extra={"reference": reference},
            )
            items = []

        logger.warning("Recovering order from gateway data", extra={"reference": reference})
        return Order(
            id=reference,
            cart=items,
            customer=customer,
            method=method,
            total_amount=total,
            created_at=_parse_timestamp(data.get("created_at") or data.get("createdAt")),
        )

    def _mark_transaction_verified(self, reference, method):
        transaction = self.repository.get_transaction(reference) or Transaction(
            reference=reference, method=method
        )
        transaction.status = TransactionStatus.SUCCESS
        if transaction.verified_at is None:
            transaction.verified_at = utcnow()
        self.repository.save_transaction(transaction)

    # ---------- Pay-on-delivery authorization ----------
    def authorize(self, reference, authorization_code) -> Order:
        if not reference or not authorization_code:
            raise ValidationError("Authorization code and reference required")

        self._get_or_404(reference)
        with self.repository.lock(reference, self.lock_timeout):
            order = self._get_or_404(reference)

            if order.method != PaymentMethod.PAY_ON_DELIVERY:
                raise _conflict(
                    f"Order {order.id} is not a pay-on-delivery order", order
                )
            if (order.status == OrderStatus.AUTHORIZED
                    and order.authorization_code != authorization_code):
                raise _conflict(f"Order {order.id} is already authorized", order)

            # TODO: confirm the code with the gateway (or a signed webhook)
            # before trusting it.
            logger.warning(
                "Accepting unverified authorization code", extra={"reference": reference}
            )

            expected = order.status
            changed = _transition(OrderStateMachine.mark_authorized, order, authorization_code)
            if changed:
                self.repository.compare_and_set(order, expected)

        if changed:
            self._after_transition(order)
        return order

    # ---------- Delivery confirmation ----------
    def confirm_delivery(self, order_id) -> DeliveryResult:
        if not order_id:
            raise ValidationError("orderId required")

        self._get_or_404(order_id)
        gateway_status = None
        with self.repository.lock(order_id, self.lock_timeout):
            order = self._get_or_404(order_id)
            expected = order.status
            state = (order.method, order.status)

            if state == (PaymentMethod.PAY_ON_DELIVERY, OrderStatus.AUTHORIZED):
                data = self.gateway.charge_authorization(
                    authorization_code=order.authorization_code,
                    email=order.customer.email,
                    amount=order.total_minor_units,
                )
                gateway_status = str(data.get("status") or "unknown")
                if gateway_status != "success":
                    logger.warning(
                        "Charge on delivery was not successful",
                        extra={"order_id": order.id, "gateway_status": gateway_status},
                    )
                    return DeliveryResult(order, completed=False, gateway_status=gateway_status)
                _transition(OrderStateMachine.mark_charged, order)

            elif state == (PaymentMethod.STANDARD, OrderStatus.PAID):
                _transition(OrderStateMachine.mark_completed, order)

            else:
                raise _conflict(
                    f"Order {order.id} ({order.method.value}) cannot be confirmed "
                    f"for delivery while {order.status.value}",
                    order,
                )

            self.repository.compare_and_set(order, expected)

        self.metrics.record_transition(order.method.value, order.status.value)
        logger.info("Delivery confirmed", extra={"order_id": order.id})
        return DeliveryResult(order, completed=True, gateway_status=gateway_status)

    # ---------- Webhooks ----------
    def handle_gateway_event(self, event) -> str:
        """
        Route a signature-checked gateway event. The payload is only used
        to find the reference; the outcome always comes from a fresh
        verification.
        """
        if not isinstance(event, dict):
            raise ValidationError("Malformed gateway event")

        event_type = event.get("event")
        if event_type != "charge.success":
            logger.info("Ignoring gateway event", extra={"event_type": event_type})
            return "ignored"

        data = event.get("data")
        reference = data.get("reference") if isinstance(data, dict) else None
        if not reference:
            raise ValidationError("Gateway event has no reference")

        self.verify(reference)
        return "processed"

    # ---------- Queries ----------
    def get_order(self, order_id) -> Order:
        return self._get_or_404(order_id)

    def list_orders(self) -> list[Order]:
        return self.repository.list()

    def get_transaction(self, reference) -> Transaction | None:
        return self.repository.get_transaction(reference)

    # ---------- Internals ----------
    def _get_or_404(self, order_id) -> Order:
        order = self.repository.get(order_id)
        if order is None:
            raise NotFoundError("Order not found")
        return order

    def _after_transition(self, order):
        self.metrics.record_transition(order.method.value, order.status.value)
        self.fulfillment(order)


def _conflict(message, order) -> StateConflictError:
    return StateConflictError(message, payload={"order": order.to_dict()})


def _transition(step, order, *args):
    try:
        return step(order, *args)
    except InvalidStateTransition as exc:
        raise _conflict(exc.message, order) from exc


def _parse_timestamp(value) -> datetime:
    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return utcnow()
        return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)
    return utcnow()
