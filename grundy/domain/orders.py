import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum

from grundy.errors import ValidationError

CENT = Decimal("0.01")

# Upper bounds on what a single checkout may ask the gateway to charge
MAX_ORDER_TOTAL = Decimal("100000000.00")
MAX_ITEM_QUANTITY = 10_000


class OrderStatus(str, Enum):
    PENDING = "pending"
    PAID = "paid"
    AUTHORIZED = "authorized"
    COMPLETED = "completed"


class PaymentMethod(str, Enum):
    STANDARD = "standard"
    PAY_ON_DELIVERY = "pay-on-delivery"

    @classmethod
    def parse(cls, value):
        if value is None or value == "":
            return cls.STANDARD
        if isinstance(value, cls):
            return value
        # The storefront sends "POD"
        if str(value).upper() == "POD":
            return cls.PAY_ON_DELIVERY
        try:
            return cls(str(value).lower())
        except ValueError:
            raise ValidationError(f"Unsupported payment method: {value}") from None


class TransactionStatus(str, Enum):
    INITIALIZED = "initialized"
    SUCCESS = "success"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def new_order_id() -> str:
    return f"order_{uuid.uuid4().hex}"


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


# ---------- Money ----------
def to_decimal(value, field_name: str = "amount") -> Decimal:
    if isinstance(value, bool):
        raise ValidationError(f"{field_name} must be a number")
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field_name} must be a number") from None
    if not amount.is_finite():
        raise ValidationError(f"{field_name} must be a finite number")
    return amount


def to_minor_units(amount: Decimal) -> int:
    """
    Major units (naira) to the gateway's minor units (kobo).

    Refuses amounts with sub-minor precision instead of rounding them away.
    """
    minor = Decimal(amount) * 100
    if minor != minor.to_integral_value():
        raise ValueError(f"{amount} has more than two decimal places")
    return int(minor)


def to_major_units(minor: int) -> Decimal:
    """Gateway minor units back to a two-place major amount."""
    return (Decimal(int(minor)) / 100).quantize(CENT)


def _quantize(amount: Decimal, field_name: str) -> Decimal:
    try:
        return amount.quantize(CENT)
    except InvalidOperation:
        raise ValidationError(f"{field_name} is out of range") from None


# ---------- Records ----------
@dataclass(frozen=True)
class LineItem:
    id: str
    name: str
    price: Decimal
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.price * self.quantity

    @classmethod
    def from_dict(cls, data, position: int = 0) -> "LineItem":
        if not isinstance(data, dict):
            raise ValidationError(f"Cart item {position} must be an object")

        price = to_decimal(data.get("price"), f"Cart item {position} price")
        if price <= 0:
            raise ValidationError(f"Cart item {position} price must be positive")
        if price > MAX_ORDER_TOTAL:
            raise ValidationError(
                f"Cart item {position} price must not exceed {MAX_ORDER_TOTAL}"
            )
        if price != _quantize(price, f"Cart item {position} price"):
            raise ValidationError(
                f"Cart item {position} price has more than two decimal places"
            )

        quantity = data.get("quantity")
        if isinstance(quantity, bool) or not isinstance(quantity, int) or quantity <= 0:
            raise ValidationError(
                f"Cart item {position} quantity must be a positive integer"
            )
        if quantity > MAX_ITEM_QUANTITY:
            raise ValidationError(
                f"Cart item {position} quantity must not exceed {MAX_ITEM_QUANTITY}"
            )

        return cls(
            id=str(data.get("id", position)),
            name=str(data.get("name", "")),
            price=price,
            quantity=quantity,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "price": float(self.price),
            "quantity": self.quantity,
        }


@dataclass(frozen=True)
class CustomerInfo:
    name: str
    email: str
    phone: str | None = None
    address: str | None = None

    @classmethod
    def from_dict(cls, data) -> "CustomerInfo":
        if not isinstance(data, dict):
            raise ValidationError("Customer information is required")

        name = str(data.get("name") or "").strip()
        email = str(data.get("email") or "").strip()
        if not name or not email:
            raise ValidationError("Customer name and email are required")
        if "@" not in email:
            raise ValidationError("Customer email is invalid")

        return cls(
            name=name,
            email=email,
            phone=data.get("phone") or None,
            address=data.get("address") or None,
        )

    def to_dict(self) -> dict:
        data = {"name": self.name, "email": self.email}
        if self.phone:
            data["phone"] = self.phone
        if self.address:
            data["address"] = self.address
        return data


def parse_cart(cart) -> list[LineItem]:
    if not cart or not isinstance(cart, list):
        raise ValidationError("Cart is required and must not be empty")
    items = [LineItem.from_dict(item, position) for position, item in enumerate(cart)]
    if cart_total(items) > MAX_ORDER_TOTAL:
        raise ValidationError(f"Cart total must not exceed {MAX_ORDER_TOTAL}")
    return items


def cart_total(items: list[LineItem]) -> Decimal:
    return _quantize(sum((item.subtotal for item in items), Decimal("0")), "Cart total")


@dataclass
class Order:
    """One checkout attempt. Status changes go through OrderStateMachine."""

    id: str
    cart: list[LineItem]
    customer: CustomerInfo
    method: PaymentMethod
    total_amount: Decimal
    status: OrderStatus = OrderStatus.PENDING
    created_at: datetime = field(default_factory=utcnow)
    authorization_code: str | None = None
    paid_at: datetime | None = None
    authorized_at: datetime | None = None
    charged_at: datetime | None = None
    completed_at: datetime | None = None

    @classmethod
    def create(cls, cart: list[LineItem], customer: CustomerInfo,
               method: PaymentMethod, order_id: str | None = None) -> "Order":
        return cls(
            id=order_id or new_order_id(),
            cart=list(cart),
            customer=customer,
            method=method,
            total_amount=cart_total(cart),
        )

    @property
    def total_minor_units(self) -> int:
        return to_minor_units(self.total_amount)

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "cart": [item.to_dict() for item in self.cart],
            "customerInfo": self.customer.to_dict(),
            "method": self.method.value,
            "totalAmount": float(self.total_amount),
            "status": self.status.value,
            "createdAt": _isoformat(self.created_at),
            "paidAt": _isoformat(self.paid_at),
            "authorizedAt": _isoformat(self.authorized_at),
            "chargedAt": _isoformat(self.charged_at),
            "completedAt": _isoformat(self.completed_at),
        }
        # The stored authorization can be re-charged; never echo it back
        data["hasAuthorization"] = self.authorization_code is not None
        return {key: value for key, value in data.items() if value is not None}


@dataclass
class Transaction:
    reference: str
    method: PaymentMethod
    authorization_url: str | None = None
    status: TransactionStatus = TransactionStatus.INITIALIZED
    created_at: datetime = field(default_factory=utcnow)
    verified_at: datetime | None = None

    def to_dict(self) -> dict:
        data = {
            "reference": self.reference,
            "authorization_url": self.authorization_url,
            "method": self.method.value,
            "status": self.status.value,
            "createdAt": _isoformat(self.created_at),
            "verifiedAt": _isoformat(self.verified_at),
        }
        return {key: value for key, value in data.items() if value is not None}
