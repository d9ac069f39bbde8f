import copy
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager

from grundy.domain.orders import Order, OrderStatus, Transaction
from grundy.errors import StateConflictError


class OrderRepository(ABC):
    """
    Storage for orders and their gateway transactions.

    Reads hand out copies: nothing a flow does to an order is visible to
    other callers until it is written back through ``compare_and_set``.
    """

    @abstractmethod
    def add(self, order: Order) -> None: ...

    @abstractmethod
    def get(self, order_id: str) -> Order | None: ...

    @abstractmethod
    def compare_and_set(self, order: Order, expected_status: OrderStatus | None) -> None:
        """
        Store ``order`` only if the stored status still equals
        ``expected_status`` (``None`` means the order must not exist yet).
        """

    @abstractmethod
    def list(self) -> list[Order]: ...

    @abstractmethod
    def count(self) -> int: ...

    @abstractmethod
    def get_transaction(self, reference: str) -> Transaction | None: ...

    @abstractmethod
    def save_transaction(self, transaction: Transaction) -> None: ...

    @abstractmethod
    def lock(self, order_id: str, timeout: float):
        """Context manager giving the caller exclusive use of one order."""


class InMemoryOrderRepository(OrderRepository):
    """Process-local repository. Each Flask app owns exactly one."""

    def __init__(self):
        self._orders: dict[str, Order] = {}
        self._transactions: dict[str, Transaction] = {}
        self._locks: dict[str, _OrderLock] = {}
        self._guard = threading.Lock()

    def add(self, order):
        self.compare_and_set(order, None)

    def get(self, order_id):
        with self._guard:
            order = self._orders.get(order_id)
            return copy.deepcopy(order) if order else None

    def compare_and_set(self, order, expected_status):
        with self._guard:
            current = self._orders.get(order.id)
            current_status = current.status if current else None
            if current_status != expected_status:
                raise StateConflictError(
                    f"Order {order.id} changed concurrently "
                    f"(expected {_label(expected_status)}, found {_label(current_status)})"
                )
            self._orders[order.id] = copy.deepcopy(order)

    def list(self):
        with self._guard:
            orders = [copy.deepcopy(order) for order in self._orders.values()]
        return sorted(orders, key=lambda order: order.created_at, reverse=True)

    def count(self):
        with self._guard:
            return len(self._orders)

    def get_transaction(self, reference):
        with self._guard:
            transaction = self._transactions.get(reference)
            return copy.deepcopy(transaction) if transaction else None

    def save_transaction(self, transaction):
        with self._guard:
            self._transactions[transaction.reference] = copy.deepcopy(transaction)

    @contextmanager
    def lock(self, order_id, timeout=10.0):
        with self._guard:
            order_lock = self._locks.get(order_id)
            if order_lock is None:
                order_lock = self._locks[order_id] = _OrderLock()
            order_lock.users += 1

        try:
            if not order_lock.acquire(timeout=timeout):
                raise StateConflictError(f"Order {order_id} is busy, try again")
            try:
                yield
            finally:
                order_lock.release()
        finally:
            with self._guard:
                order_lock.users -= 1
                if not order_lock.users:
                    del self._locks[order_id]


class _OrderLock:
    """A per-order mutex plus the number of callers holding or waiting on it."""

    def __init__(self):
        self._lock = threading.Lock()
        self.users = 0

    def acquire(self, timeout):
        return self._lock.acquire(timeout=timeout)

    def release(self):
        self._lock.release()


def _label(status):
    return status.value if status else "no order"
