"""Celery application and periodic schedule.

Run the worker and the scheduler with:
    celery -A eventhub.worker worker --loglevel=info
    celery -A eventhub.worker beat --loglevel=info
"""
from celery import Celery
from celery.schedules import crontab
from celery.signals import setup_logging as celery_setup_logging

from eventhub.config import settings
from eventhub.log_config import setup_logging


def make_celery(app_name: str = "eventhub") -> Celery:
    celery = Celery(app_name, broker=settings.REDIS_URL, backend=settings.REDIS_URL, include=["eventhub.tasks"])
    celery.conf.task_serializer = "json"
    celery.conf.result_serializer = "json"
    celery.conf.accept_content = ["json"]
    celery.conf.result_persistent = False
    celery.conf.task_track_started = True
    celery.conf.timezone = "UTC"
    celery.conf.beat_schedule = {
        "one-day-reminders": {
            "task": "eventhub.tasks.send_one_day_reminders_task",
            "schedule": crontab(minute=0, hour=9),
        },
        "one-hour-reminders": {
            "task": "eventhub.tasks.send_one_hour_reminders_task",
            "schedule": crontab(minute=0),
        },
        "update-event-statuses": {
            "task": "eventhub.tasks.update_event_statuses_task",
            "schedule": crontab(minute="*/30"),
        },
    }
    return celery


celery_app = make_celery()


@celery_setup_logging.connect
def _configure_worker_logging(**kwargs):
    setup_logging()
