"""ARQ job definitions."""

import uuid
from typing import Any, Awaitable, Callable

from arq import Retry

from storefront.core.config import get_settings
from storefront.core.logging import bind_job, configure_logging, get_logger
from storefront.db.init import init_db
from storefront.models.failed_job import FailedJob
from storefront.services import notifications
from storefront.worker.cron import run_reconcile_financial_status

log = get_logger(__name__)


async def dead_letter(job_name: str, job_id: str | None, args: list[Any], reason: str, tries: int) -> FailedJob:
    fid = job_id or str(uuid.uuid4())
    failed = FailedJob(job_name=job_name, job_id=fid, args=args, reason=reason[:2000], tries=tries)
    await failed.insert()
    log.error("job_dead_lettered", job=job_name, job_id=fid, tries=tries, reason=reason)
    return failed


async def _run_with_dlq(
    ctx: dict[str, Any],
    job_name: str,
    args: list[Any],
    run: Callable[[], Awaitable[Any]],
    retry: bool = False,
) -> None:
    """Run the job body. With retry, failures are re-queued with a growing delay
    until notification_max_tries; the last failure (or any failure without retry)
    goes to FailedJob and is re-raised.
    """
    job_id = ctx.get("job_id") if isinstance(ctx.get("job_id"), str) else None
    job_try = ctx.get("job_try", 1)
    bind_job(job_name, job_id)
    try:
        await run()
    except Exception as e:
        s = get_settings()
        if retry and job_try < s.notification_max_tries:
            defer = job_try * s.notification_retry_delay_seconds
            log.warning("job_retry", job=job_name, job_try=job_try, defer=defer, reason=str(e))
            raise Retry(defer=defer) from e
        await dead_letter(job_name, job_id, args, str(e), job_try)
        raise


async def send_payment_notification(ctx: dict[str, Any], payload: dict[str, Any]) -> None:
    """Deliver one payment embed to the webhook."""

    async def _run() -> None:
        n = notifications.PaymentNotification(**payload)
        sent = await notifications.post_embed(notifications.build_payment_embed(n))
        log.info("notification_sent" if sent else "notification_skipped", kind="payment", type=n.type, order_number=n.order_number)

    await _run_with_dlq(ctx, "send_payment_notification", [payload], _run, retry=True)


async def send_authorization_notification(ctx: dict[str, Any], payload: dict[str, Any]) -> None:
    """Deliver one image-access request embed to the webhook."""

    async def _run() -> None:
        n = notifications.AuthorizationRequestNotification(**payload)
        sent = await notifications.post_embed(notifications.build_authorization_embed(n))
        log.info("notification_sent" if sent else "notification_skipped", kind="authorization", user_id=n.user_id)

    await _run_with_dlq(ctx, "send_authorization_notification", [payload], _run, retry=True)


async def send_contact_notification(ctx: dict[str, Any], payload: dict[str, Any]) -> None:
    """Deliver one contact-form submission to the contact webhook."""

    async def _run() -> None:
        n = notifications.ContactMessage(**payload)
        embed = notifications.build_contact_embed(n)
        sent = await notifications.post_embed(embed, url=notifications.contact_webhook_url())
        log.info("notification_sent" if sent else "notification_skipped", kind="contact")

    await _run_with_dlq(ctx, "send_contact_notification", [payload], _run, retry=True)


async def reconcile_financial_status(ctx: dict[str, Any]) -> None:
    """Cron: re-derive order financial status from payments."""
    await _run_with_dlq(ctx, "reconcile_financial_status", [], run_reconcile_financial_status)


async def startup(ctx: dict[str, Any]) -> None:
    configure_logging(get_settings().debug)
    ctx["mongo"] = await init_db()


async def shutdown(ctx: dict[str, Any]) -> None:
    client = ctx.get("mongo")
    if client is not None:
        client.close()
