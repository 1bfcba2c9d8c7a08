from venuebook.tasks.celery_app import celery
from venuebook.tasks import worker_jobs

@celery.task(name="venuebook.tasks.jobs.cleanup_expired_bookings")
def cleanup_expired_bookings():
    return worker_jobs.cleanup_expired_bookings()


@celery.task(name="venuebook.tasks.jobs.process_email_queue")
def process_email_queue(limit: int = 50):
    return worker_jobs.process_email_queue(limit=limit)
