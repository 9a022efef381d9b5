"""
Redis-based policy change watcher for the authorization enforcer.

This module provides functionality to monitor policy changes in real-time using Redis
as a message broker. It enables automatic policy reloading across multiple instances
of the authorization system to maintain consistency and synchronization.

The watcher is only created on request (see ``PermissionManager.from_settings``);
the reload it triggers is registered by ``PermissionManager.set_watcher``.
"""

import logging

from django.conf import settings
from casbin_redis_watcher import WatcherOptions, new_watcher

logger = logging.getLogger(__name__)


def create_watcher():
    """
    Create and configure the Redis watcher for policy changes.

    Returns:
        The configured watcher instance, or None if Redis is unavailable.
    """
    watcher_options = WatcherOptions()
    watcher_options.host = getattr(settings, "REDIS_HOST", "localhost")
    watcher_options.port = getattr(settings, "REDIS_PORT", 6379)

    try:
        watcher = new_watcher(watcher_options)
        logger.info("Redis watcher created successfully")
        return watcher
    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error(f"Failed to create Redis watcher: {e}")
        return None
