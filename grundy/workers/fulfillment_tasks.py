import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task(name="grundy.assign_delivery_agent", ignore_result=True)
def assign_delivery_agent(order_id, method, status):
    """
    Hand a paid or authorized order over to logistics.

    Rider lookup and assignment live outside this service; for now the task
    only records the hand-off.
    """
    logger.info(
        "Triggering order fulfillment",
        extra={"order_id": order_id, "method": method, "status": status},
    )
    logger.info("Order assigned to rider", extra={"order_id": order_id})
    return order_id
