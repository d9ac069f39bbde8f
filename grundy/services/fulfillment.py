import logging

from grundy.workers.fulfillment_tasks import assign_delivery_agent

logger = logging.getLogger(__name__)


class FulfillmentTrigger:
    """
    Fire-and-forget hand-off to the fulfillment worker.

    Called after an order becomes paid or authorized. A failure here is
    logged and swallowed: the transition that triggered it already happened
    and must stand.
    """

    def __init__(self, dispatch=None, enabled=True):
        self._dispatch = dispatch or self._enqueue
        self.enabled = enabled

    @staticmethod
    def _enqueue(order_id, method, status):
        assign_delivery_agent.delay(order_id, method, status)

    def __call__(self, order) -> bool:
        if not self.enabled:
            logger.debug("Fulfillment disabled, skipping", extra={"order_id": order.id})
            return False

        try:
            self._dispatch(order.id, order.method.value, order.status.value)
        except Exception:
            logger.exception("Fulfillment dispatch failed", extra={"order_id": order.id})
            return False

        logger.info("Fulfillment dispatched", extra={"order_id": order.id})
        return True
