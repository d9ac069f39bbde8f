from .orders import (
    CustomerInfo,
    LineItem,
    Order,
    OrderStatus,
    PaymentMethod,
    Transaction,
    TransactionStatus,
    cart_total,
    parse_cart,
    to_major_units,
    to_minor_units,
)

__all__ = [
    "CustomerInfo",
    "LineItem",
    "Order",
    "OrderStatus",
    "PaymentMethod",
    "Transaction",
    "TransactionStatus",
    "cart_total",
    "parse_cart",
    "to_major_units",
    "to_minor_units",
]
