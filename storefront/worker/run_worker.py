"""Run ARQ worker. Usage: arq storefront.worker.run_worker.WorkerSettings
(or python -m storefront.worker.run_worker)."""

from arq import run_worker
from arq.cron import cron

from storefront.core.config import get_settings
from storefront.worker.queue import get_redis_settings
from storefront.worker.tasks import (
    reconcile_financial_status,
    send_authorization_notification,
    send_contact_notification,
    send_payment_notification,
    shutdown,
    startup,
)


class WorkerSettings:
    redis_settings = get_redis_settings()
    functions = [send_payment_notification, send_authorization_notification, send_contact_notification]
    cron_jobs = [
        cron(reconcile_financial_status, minute=set(range(0, 60, 5)), second=0, run_at_startup=True),
    ]
    on_startup = startup
    on_shutdown = shutdown
    max_tries = get_settings().notification_max_tries


if __name__ == "__main__":
    run_worker(WorkerSettings)
