"""Cron: repair orders whose financial status drifted from their payment."""

from storefront.core.logging import get_logger
from storefront.services import orders as orders_service

log = get_logger(__name__)


async def run_reconcile_financial_status() -> int:
    fixed = await orders_service.reconcile_financial_status()
    if fixed:
        log.warning("reconcile_financial_status", repaired=fixed)
    else:
        log.info("reconcile_financial_status", repaired=0)
    return fixed
