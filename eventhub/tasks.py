"""Celery tasks wrapping the reminder sweep and the status refresh job."""
import logging

from eventhub.database import SessionLocal
from eventhub.services import reminder_service, status_service
from eventhub.services.notifier import EmailNotifier
from eventhub.services.status_service import utcnow
from eventhub.worker import celery_app

logger = logging.getLogger(__name__)


@celery_app.task
def send_one_day_reminders_task() -> dict:
    """Email confirmed registrants of events starting in 24-25 hours."""
    db = SessionLocal()
    try:
        result = reminder_service.send_one_day_reminders(db, EmailNotifier(), utcnow())
    finally:
        db.close()
    logger.info("24-hour reminder job: %s", result)
    return result


@celery_app.task
def send_one_hour_reminders_task() -> dict:
    """Email confirmed registrants of events starting in 1-2 hours."""
    db = SessionLocal()
    try:
        result = reminder_service.send_one_hour_reminders(db, EmailNotifier(), utcnow())
    finally:
        db.close()
    logger.info("1-hour reminder job: %s", result)
    return result


@celery_app.task
def update_event_statuses_task() -> int:
    db = SessionLocal()
    try:
        return status_service.update_event_statuses(db, utcnow())
    finally:
        db.close()
