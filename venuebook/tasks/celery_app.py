from urllib.parse import urlparse, urlunparse, parse_qs, urlencode

from celery import Celery
from celery.schedules import crontab
from celery.signals import worker_ready
from venuebook.core.config import settings


def broker_url(url: str) -> str:
    """rediss:// brokers need an explicit ssl_cert_reqs for Celery's redis transport."""
    if not url or urlparse(url).scheme.lower() != "rediss":
        return url
    parsed = urlparse(url)
    qs = parse_qs(parsed.query)
    qs.setdefault("ssl_cert_reqs", ["CERT_NONE"])
    return urlunparse(parsed._replace(query=urlencode(qs, doseq=True)))


_broker = broker_url(settings.REDIS_URL)

celery = Celery(
    "venuebook",
    broker=_broker,
    backend=_broker,
    include=["venuebook.tasks.jobs"],
)

celery.conf.update(
    timezone=settings.TIMEZONE,
    enable_utc=True,
    task_acks_late=True,
    worker_prefetch_multiplier=1,
)


# Confirmation emails that failed while the worker was down go out as soon as it is back
@worker_ready.connect
def on_worker_ready(sender, **kwargs):
    from venuebook.tasks.jobs import process_email_queue
    process_email_queue.delay()


celery.conf.beat_schedule = {
    # daily, in the venue's local timezone
    "cleanup-expired-bookings-daily": {
        "task": "venuebook.tasks.jobs.cleanup_expired_bookings",
        "schedule": crontab(hour=3, minute=0),
    },
    "process-email-queue-every-2-minutes": {
        "task": "venuebook.tasks.jobs.process_email_queue",
        "schedule": 120.0,
        "kwargs": {"limit": 50},
    },
}
