"""
Celery application configuration
"""

from celery import Celery
from kombu import Exchange, Queue

from push_engine.core.config import settings
from push_engine.core.log_config import configure_logging

configure_logging()

# Create Celery app
celery_app = Celery(
    "push-engine",
    broker=settings.CELERY_BROKER_URL,
    backend=settings.CELERY_RESULT_BACKEND,
    include=[
        "push_engine.tasks.notifications",
    ]
)

celery_app.conf.task_queues = (
    Queue("celery", Exchange("celery"), routing_key="celery"),
    Queue("push", Exchange("push"), routing_key="push"),
)
celery_app.conf.task_default_queue = "celery"
celery_app.conf.task_routes = {
    "push_engine.tasks.notifications.deliver_notification": {"queue": "push"},
}

# Configure Celery
celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    task_time_limit=10 * 60,  # 10 minutes
    task_soft_time_limit=8 * 60,  # 8 minutes
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=1000,
    worker_hijack_root_logger=False,
    # Broker connection settings - prevent hanging
    broker_connection_timeout=5,
    broker_connection_retry=True,
    broker_connection_retry_on_startup=True,
    broker_connection_max_retries=3,
    broker_pool_limit=10,
    broker_transport_options={
        "visibility_timeout": 3600,
        "socket_connect_timeout": 5,
        "socket_timeout": 5,
        "socket_keepalive": True,
        "health_check_interval": 30,
    },
)

celery_app.conf.beat_schedule = {
    "process-scheduled-notifications": {
        "task": "push_engine.tasks.notifications.process_scheduled_notifications",
        "schedule": settings.SCHEDULER_SWEEP_INTERVAL_SECONDS,  # Every 5 minutes by default
    },
}
