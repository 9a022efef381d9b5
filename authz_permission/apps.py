"""
authz_permission Django application initialization.
"""

from django.apps import AppConfig


class AuthzPermissionConfig(AppConfig):
    """
    Configuration for the authz_permission Django application.
    """

    name = "authz_permission"
    verbose_name = "AuthZ Permission"
    default_auto_field = "django.db.models.BigAutoField"

    def ready(self):
        """Connect the policy cache invalidation handlers."""
        from authz_permission import handlers  # pylint: disable=import-outside-toplevel,unused-import
