import pytest
from decimal import Decimal

from grundy.domain.orders import (
    MAX_ITEM_QUANTITY,
    MAX_ORDER_TOTAL,
    CustomerInfo,
    LineItem,
    Order,
    OrderStatus,
    PaymentMethod,
    cart_total,
    parse_cart,
    to_major_units,
    to_minor_units,
)
from grundy.errors import ValidationError


def test_cart_total_is_sum_of_price_times_quantity(sample_cart):
    items = parse_cart(sample_cart)

    assert cart_total(items) == Decimal("170.00")


def test_cart_total_with_fractional_prices():
    items = parse_cart([
        {"id": "a", "name": "Water", "price": 0.1, "quantity": 3},
        {"id": "b", "name": "Bread", "price": "19.99", "quantity": 2},
    ])

    assert cart_total(items) == Decimal("40.28")


@pytest.mark.parametrize("amount", ["0", "0.01", "0.10", "19.99", "170", "123456.78"])
def test_major_minor_conversion_is_reversible(amount):
    value = Decimal(amount)

    assert to_major_units(to_minor_units(value)) == value


def test_minor_units_for_scenario_total():
    assert to_minor_units(Decimal("170")) == 17000
    assert to_major_units(17000) == Decimal("170.00")


def test_minor_units_refuses_sub_kobo_precision():
    with pytest.raises(ValueError):
        to_minor_units(Decimal("1.005"))


@pytest.mark.parametrize("cart", [None, [], {}, "cart"])
def test_empty_or_missing_cart_is_rejected(cart):
    with pytest.raises(ValidationError, match="Cart is required"):
        parse_cart(cart)


@pytest.mark.parametrize("item,reason", [
    ({"id": "1", "name": "x", "price": 0, "quantity": 1}, "price must be positive"),
    ({"id": "1", "name": "x", "price": -5, "quantity": 1}, "price must be positive"),
    ({"id": "1", "name": "x", "price": "abc", "quantity": 1}, "must be a number"),
    ({"id": "1", "name": "x", "price": 1.234, "quantity": 1}, "two decimal places"),
    ({"id": "1", "name": "x", "price": 5, "quantity": 0}, "positive integer"),
    ({"id": "1", "name": "x", "price": 5, "quantity": 1.5}, "positive integer"),
    ({"id": "1", "name": "x", "price": 5, "quantity": True}, "positive integer"),
])
def test_invalid_line_items_are_rejected(item, reason):
    with pytest.raises(ValidationError, match=reason):
        parse_cart([item])


def test_customer_requires_name_and_email():
    with pytest.raises(ValidationError):
        CustomerInfo.from_dict({"name": "Ada"})
    with pytest.raises(ValidationError):
        CustomerInfo.from_dict({"email": "ada@example.com"})
    with pytest.raises(ValidationError):
        CustomerInfo.from_dict(None)


def test_customer_phone_and_address_are_optional():
    customer = CustomerInfo.from_dict({"name": "Ada", "email": "ada@example.com"})

    assert customer.phone is None
    assert customer.to_dict() == {"name": "Ada", "email": "ada@example.com"}


@pytest.mark.parametrize("raw,expected", [
    (None, PaymentMethod.STANDARD),
    ("standard", PaymentMethod.STANDARD),
    ("pay-on-delivery", PaymentMethod.PAY_ON_DELIVERY),
    ("POD", PaymentMethod.PAY_ON_DELIVERY),
    ("pod", PaymentMethod.PAY_ON_DELIVERY),
])
def test_payment_method_parsing(raw, expected):
    assert PaymentMethod.parse(raw) is expected


def test_unknown_payment_method_is_rejected():
    with pytest.raises(ValidationError, match="Unsupported payment method"):
        PaymentMethod.parse("crypto")


def test_new_order_is_pending_with_fixed_total(sample_cart, customer_info):
    items = parse_cart(sample_cart)
    order = Order.create(items, CustomerInfo.from_dict(customer_info), PaymentMethod.STANDARD)

    assert order.status == OrderStatus.PENDING
    assert order.total_amount == Decimal("170.00")
    assert order.total_minor_units == 17000
    assert order.id.startswith("order_")


def test_order_ids_are_unique(sample_cart, customer_info):
    items = parse_cart(sample_cart)
    customer = CustomerInfo.from_dict(customer_info)

    ids = {Order.create(items, customer, PaymentMethod.STANDARD).id for _ in range(50)}

    assert len(ids) == 50


def test_order_to_dict_omits_unset_timestamps_and_hides_authorization(customer_info):
    order = Order.create(
        [LineItem(id="1", name="Rice", price=Decimal("25"), quantity=2)],
        CustomerInfo.from_dict(customer_info),
        PaymentMethod.PAY_ON_DELIVERY,
    )
    order.authorization_code = "AUTH_secret"

    data = order.to_dict()

    assert data["status"] == "pending"
    assert data["method"] == "pay-on-delivery"
    assert data["totalAmount"] == 50.0
    assert data["customerInfo"]["email"] == customer_info["email"]
    assert "createdAt" in data
    for key in ("paidAt", "authorizedAt", "chargedAt", "completedAt"):
        assert key not in data
    assert "AUTH_secret" not in str(data)
    assert data["hasAuthorization"] is True


@pytest.mark.parametrize("item,reason", [
    ({"id": "1", "name": "x", "price": "1e30", "quantity": 1}, "must not exceed"),
    ({"id": "1", "name": "x", "price": "100000000.01", "quantity": 1}, "must not exceed"),
    ({"id": "1", "name": "x", "price": 0.01, "quantity": 10**30}, "must not exceed"),
    ({"id": "1", "name": "x", "price": 5, "quantity": MAX_ITEM_QUANTITY + 1}, "must not exceed"),
    ({"id": "1", "name": "x", "price": "1e-30", "quantity": 1}, "two decimal places"),
])
def test_out_of_range_line_items_are_rejected(item, reason):
    with pytest.raises(ValidationError, match=reason):
        parse_cart([item])


def test_cart_total_is_capped():
    cart = [{"id": "1", "name": "Generator", "price": "60000000", "quantity": 1},
            {"id": "2", "name": "Generator", "price": "60000000", "quantity": 1}]

    with pytest.raises(ValidationError, match="Cart total must not exceed"):
        parse_cart(cart)


def test_cart_at_the_cap_is_accepted():
    items = parse_cart([{"id": "1", "name": "Fleet", "price": "10000", "quantity": MAX_ITEM_QUANTITY}])

    assert cart_total(items) == MAX_ORDER_TOTAL
