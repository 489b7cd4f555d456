"""
Cache keys for the current account list and detail views.

List responses are stored under a version number; invalidating the list
bumps the version so every cached page for every filter goes stale at
once.
"""

import hashlib
import time

from django.conf import settings
from django.core.cache import cache

LIST_VERSION_KEY = 'current_accounts:list:version'


def cache_ttl() -> int:
    return getattr(settings, 'CURRENT_ACCOUNTS_CACHE_TTL', 300)


def detail_cache_key(account_id) -> str:
    return f'current_accounts:detail:{account_id}'


def list_cache_key(query_string: str) -> str:
    version = cache.get_or_set(LIST_VERSION_KEY, 1, timeout=None)
    digest = hashlib.md5(query_string.encode('utf-8')).hexdigest()
    return f'current_accounts:list:{version}:{digest}'


def invalidate_account_views(account_id=None) -> None:
    """Drop cached list pages and, if given, one account's detail."""
    try:
        cache.incr(LIST_VERSION_KEY)
    except ValueError:
        # Version key evicted; any fresh value orphans the old pages
        cache.set(LIST_VERSION_KEY, int(time.time()), timeout=None)

    if account_id is not None:
        cache.delete(detail_cache_key(account_id))
