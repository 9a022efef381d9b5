"""
Signal handlers for the authorization framework.

These handlers keep the cached rule list read by ``DatabaseAdapter.load_policy``
consistent with the ``casbin_rule`` table.
"""

import logging

from django.core.cache import cache
from django.db import transaction
from django.dispatch import receiver

from authz_permission.models import CasbinRule
from authz_permission.models.engine import get_policy_cache_key
from authz_permission.signals import policy_deleted, policy_saved

logger = logging.getLogger(__name__)


@receiver(policy_saved, sender=CasbinRule)
@receiver(policy_deleted, sender=CasbinRule)
def invalidate_policy_cache(sender, ptype=None, **kwargs):  # pylint: disable=unused-argument
    """
    Drop the cached rule list after policy rows change.

    The entry is deleted right away and once more when the surrounding
    transaction commits, so a read made by another connection before the
    commit cannot leave stale rows in the cache.

    Args:
        sender: The model class (CasbinRule).
        ptype: The policy type that changed, or None for several types.
        **kwargs: Additional keyword arguments from the signal.
    """
    cache_key = get_policy_cache_key()
    cache.delete(cache_key)
    transaction.on_commit(lambda: cache.delete(cache_key))
    logger.debug(f"Invalidated policy cache after '{ptype}' rules changed")
