"""
Test settings for authz_permission.
"""

import os

from authz_permission import ROOT_DIRECTORY

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": "default.db",
        "USER": "",
        "PASSWORD": "",
        "HOST": "",
        "PORT": "",
    }
}

CACHES = {
    "default": {
        "BACKEND": "django.core.cache.backends.locmem.LocMemCache",
        "LOCATION": "authz-permission-tests",
    }
}

INSTALLED_APPS = (
    "django.contrib.contenttypes",
    "authz_permission.apps.AuthzPermissionConfig",
)

SECRET_KEY = "test-secret-key"

USE_TZ = True

# Casbin configuration
CASBIN_MODEL = os.path.join(ROOT_DIRECTORY, "engine", "config", "model.conf")
CASBIN_DB_ALIAS = "default"
CASBIN_CACHE_KEY = "casbin_rule_all"
CASBIN_CACHE_TIMEOUT = None
CASBIN_AUTO_SAVE_POLICY = True
CASBIN_WATCHER_ENABLED = False
REDIS_HOST = "localhost"
REDIS_PORT = 6379
