"""
Notification tasks
"""

import uuid

from loguru import logger

from push_engine.celery_app import celery_app
from push_engine.core.celery_async import run_async_task
from push_engine.core.celery_database import CelerySessionLocal
from push_engine.domains.notifications import NotificationsFacade
from push_engine.domains.notifications.channels import PushClients


@celery_app.task(bind=True)
def deliver_notification(self, notification_id: str, generation: int):
    """
    Deliver one notification generation to every recipient device.

    Failures are written to the notification record by the delivery service,
    so the task itself is never retried.

    Args:
        notification_id: ID of the notification
        generation: send generation that triggered this delivery
    """
    logger.info(f"Delivering notification {notification_id} (generation {generation})")
    result = run_async_task(_deliver_notification_async(notification_id, generation))
    if result["claimed"]:
        logger.info(
            f"Notification {notification_id} delivered: "
            f"{result['delivered']} sent, {result['failed']} failed"
        )
    return result


async def _deliver_notification_async(notification_id: str, generation: int):
    """Async implementation of notification delivery"""
    async with PushClients.from_settings() as clients:
        async with CelerySessionLocal() as db:
            notifications_facade = NotificationsFacade(db, clients=clients)
            summary = await notifications_facade.deliver(uuid.UUID(notification_id), int(generation))
            return summary.as_dict()


@celery_app.task(bind=True)
def process_scheduled_notifications(self):
    """
    Promote due scheduled notifications to sent and queue their delivery
    """
    logger.info("Processing scheduled notifications")

    try:
        result = run_async_task(_process_scheduled_notifications_async())
        logger.info(f"Scheduled notifications processed: {result['processed']} queued")
        return result

    except Exception as e:
        logger.error(f"Failed to process scheduled notifications: {e}")
        raise self.retry(exc=e, countdown=30, max_retries=3)


async def _process_scheduled_notifications_async():
    """Async implementation of the scheduled notification sweep"""
    async with CelerySessionLocal() as db:
        notifications_facade = NotificationsFacade(db)
        queued = await notifications_facade.process_scheduled_notifications()

        return {
            "status": "success",
            "processed": len(queued),
            "notification_ids": [str(notification_id) for notification_id, _ in queued],
        }
