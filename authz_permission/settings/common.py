"""
Common settings for authz_permission.
"""

import os

from authz_permission import ROOT_DIRECTORY


def plugin_settings(settings):
    """
    Install the default Casbin settings for authz_permission.

    Host projects call this from their settings module. Every value already
    defined by the host is left untouched.

    Args:
        settings: The Django settings object
    """
    # Set default CASBIN_MODEL if not already set, this points to the model.conf file
    # which defines the access control model for Casbin.
    if not hasattr(settings, "CASBIN_MODEL"):
        settings.CASBIN_MODEL = os.path.join(ROOT_DIRECTORY, "engine", "config", "model.conf")

    # Database alias used by the adapter for every read and write.
    if not hasattr(settings, "CASBIN_DB_ALIAS"):
        settings.CASBIN_DB_ALIAS = "default"

    # Cache entry holding every stored rule for the unfiltered load path.
    # A timeout of None keeps the entry until a mutation invalidates it.
    if not hasattr(settings, "CASBIN_CACHE_KEY"):
        settings.CASBIN_CACHE_KEY = "casbin_rule_all"
    if not hasattr(settings, "CASBIN_CACHE_TIMEOUT"):
        settings.CASBIN_CACHE_TIMEOUT = None

    # Set default CASBIN_AUTO_SAVE_POLICY if not already set.
    # This setting defines whether the Casbin enforcer should automatically
    # save policy changes back to the database.
    if not hasattr(settings, "CASBIN_AUTO_SAVE_POLICY"):
        settings.CASBIN_AUTO_SAVE_POLICY = True

    # Redis watcher used to broadcast policy changes between processes.
    if not hasattr(settings, "CASBIN_WATCHER_ENABLED"):
        settings.CASBIN_WATCHER_ENABLED = False
    if not hasattr(settings, "REDIS_HOST"):
        settings.REDIS_HOST = "localhost"
    if not hasattr(settings, "REDIS_PORT"):
        settings.REDIS_PORT = 6379
