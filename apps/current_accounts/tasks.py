"""
Celery tasks for the current accounts app.
"""

import logging
from functools import partial

from celery import shared_task
from django.db import transaction

from apps.current_accounts.caching import invalidate_account_views

logger = logging.getLogger(__name__)


@shared_task(
    name='current_accounts.invalidate_cached_views',
    ignore_result=True,
)
def invalidate_cached_views(account_id=None):
    """
    Drop cached listing pages and the detail view of one account.

    Fire-and-forget: the outcome never affects the write that queued it.
    """
    invalidate_account_views(account_id)
    logger.debug("Invalidated cached account views (account=%s)", account_id)


def schedule_invalidation(account_id=None):
    """Queue cache invalidation once the current transaction commits."""
    account_id = str(account_id) if account_id is not None else None
    transaction.on_commit(
        partial(invalidate_cached_views.delay, account_id),
        robust=True,
    )
