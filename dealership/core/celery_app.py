"""Celery app de la concesionaria: solo corre tareas de email por ahora."""

from __future__ import annotations

from celery import Celery
from kombu import Exchange, Queue

from dealership.core.config import Settings, settings

TASK_MODULES = ("dealership.tasks.email",)


def create_celery_app(config: Settings = settings) -> Celery:
    app = Celery("abc-car-traders", include=list(TASK_MODULES))
    exchange = Exchange("dealership", type="direct")

    app.conf.update(
        broker_url=config.CELERY_BROKER_URL,
        result_backend=config.CELERY_RESULT_BACKEND,
        task_always_eager=config.CELERY_TASK_ALWAYS_EAGER,
        task_eager_propagates=True,
        broker_connection_retry_on_startup=True,
        task_serializer="json",
        result_serializer="json",
        accept_content=["json"],
        # los emails no tienen resultado útil
        task_ignore_result=True,
        task_acks_late=True,
        worker_prefetch_multiplier=1,
        task_default_queue=config.CELERY_TASK_DEFAULT_QUEUE,
        task_default_exchange=exchange.name,
        task_default_routing_key=config.CELERY_TASK_DEFAULT_QUEUE,
        task_queues=(
            Queue(config.CELERY_TASK_DEFAULT_QUEUE, exchange, routing_key=config.CELERY_TASK_DEFAULT_QUEUE),
            Queue(config.EMAIL_QUEUE, exchange, routing_key=config.EMAIL_QUEUE),
        ),
        task_routes={
            "email.*": {"queue": config.EMAIL_QUEUE, "routing_key": config.EMAIL_QUEUE},
        },
    )
    return app


celery_app = create_celery_app()
