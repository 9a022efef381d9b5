"""
Authorization enforcer handle for authz_permission.

Provides ``PermissionManager``, an explicit object owning a Casbin
``SyncedEnforcer`` backed by the ``DatabaseAdapter``. The host process builds
it once and passes it to the code that needs authorization checks.

Usage:
    from authz_permission.engine.enforcer import PermissionManager
    manager = PermissionManager.from_settings()
    allowed = manager.enforce("alice", "data1", "read")

Requires `CASBIN_MODEL` setting when built with ``from_settings``.
"""

import logging
from typing import Any, Callable, Optional

from casbin import SyncedEnforcer
from casbin.model import Model
from django.conf import settings

from authz_permission.engine.adapter import DatabaseAdapter
from authz_permission.engine.watcher import create_watcher

logger = logging.getLogger(__name__)


class PermissionManager:
    """Owner of the Casbin enforcer used for policy checks and management.

    Only the operations listed on this class are forwarded to the enforcer.

    Attributes:
        enforcer (SyncedEnforcer): The wrapped enforcer.
        adapter (DatabaseAdapter): The adapter persisting the policy.
        watcher: The change notifier attached with ``set_watcher``, if any.
    """

    def __init__(self, model: Any, adapter: Optional[DatabaseAdapter] = None, watcher=None):
        """Create the enforcer and load the stored policy.

        Args:
            model: Path to a Casbin model file, or a ``casbin.model.Model``.
            adapter: The adapter to use. A ``DatabaseAdapter`` on the
                ``CASBIN_DB_ALIAS`` database by default.
            watcher: Optional change notifier, see ``set_watcher``.
        """
        self.adapter = adapter or DatabaseAdapter()
        self.enforcer = SyncedEnforcer(model, self.adapter)
        self.enforcer.enable_auto_save(getattr(settings, "CASBIN_AUTO_SAVE_POLICY", True))
        self.watcher = None
        if watcher is not None:
            self.set_watcher(watcher)

    @classmethod
    def from_settings(cls) -> "PermissionManager":
        """Build a manager from the Django settings.

        Uses ``CASBIN_MODEL`` for the model and, when ``CASBIN_WATCHER_ENABLED``
        is set, a Redis watcher on ``REDIS_HOST``/``REDIS_PORT``.

        Returns:
            PermissionManager: The configured manager.
        """
        watcher = create_watcher() if getattr(settings, "CASBIN_WATCHER_ENABLED", False) else None
        return cls(settings.CASBIN_MODEL, DatabaseAdapter(), watcher=watcher)

    @classmethod
    def from_model_text(cls, text: str, adapter: Optional[DatabaseAdapter] = None, watcher=None) -> "PermissionManager":
        """Build a manager from the text of a Casbin model configuration."""
        model = Model()
        model.load_model_from_text(text)
        return cls(model, adapter, watcher=watcher)

    def set_watcher(self, watcher) -> None:
        """Attach a change notifier and register the policy reload with it.

        Mutations made through this manager are announced by the enforcer on
        the watcher; announcements from other processes call
        ``handle_policy_change``.
        """
        self.enforcer.set_watcher(watcher)
        watcher.set_update_callback(self.handle_policy_change)
        self.watcher = watcher

    def handle_policy_change(self, event=None) -> None:
        """Reload the whole policy after a change notification.

        Args:
            event: The notification payload, if the transport sends one.
        """
        logger.info(f"Policy change event received: {event}")
        self.enforcer.load_policy()

    def get_adapter(self) -> DatabaseAdapter:
        return self.adapter

    def load_policy(self) -> None:
        self.enforcer.load_policy()

    def load_filtered_policy(self, filter) -> None:  # pylint: disable=redefined-builtin
        self.enforcer.load_filtered_policy(filter)

    def is_filtered(self) -> bool:
        return self.adapter.is_filtered()

    def save_policy(self) -> None:
        self.enforcer.save_policy()

    def enforce(self, *rvals) -> bool:
        return self.enforcer.enforce(*rvals)

    def get_policy(self) -> list[list[str]]:
        return self.enforcer.get_policy()

    def has_policy(self, *params) -> bool:
        return self.enforcer.has_policy(*params)

    def add_policy(self, *params) -> bool:
        return self.enforcer.add_policy(*params)

    def add_policies(self, rules) -> bool:
        return self.enforcer.add_policies(rules)

    def remove_policy(self, *params) -> bool:
        return self.enforcer.remove_policy(*params)

    def remove_policies(self, rules) -> bool:
        return self.enforcer.remove_policies(rules)

    def remove_filtered_policy(self, field_index: int, *field_values) -> bool:
        return self.enforcer.remove_filtered_policy(field_index, *field_values)

    def update_policy(self, old_rule, new_rule) -> bool:
        return self.enforcer.update_policy(old_rule, new_rule)

    def get_all_roles(self) -> list[str]:
        return self.enforcer.get_all_roles()

    def get_roles_for_user(self, name: str, *domain) -> list[str]:
        return self.enforcer.get_roles_for_user(name, *domain)

    def get_users_for_role(self, name: str, *domain) -> list[str]:
        return self.enforcer.get_users_for_role(name, *domain)

    def has_role_for_user(self, name: str, role: str, *domain) -> bool:
        return self.enforcer.has_role_for_user(name, role, *domain)

    def add_role_for_user(self, user: str, role: str, *domain) -> bool:
        return self.enforcer.add_role_for_user(user, role, *domain)

    def delete_role_for_user(self, user: str, role: str, *domain) -> bool:
        return self.enforcer.delete_role_for_user(user, role, *domain)

    def delete_roles_for_user(self, user: str, *domain) -> bool:
        return self.enforcer.delete_roles_for_user(user, *domain)

    def delete_role(self, role: str) -> bool:
        return self.enforcer.delete_role(role)

    def delete_permission(self, *permission) -> bool:
        return self.enforcer.delete_permission(*permission)

    def add_permission_for_user(self, user: str, *permission) -> bool:
        return self.enforcer.add_permission_for_user(user, *permission)

    def delete_permission_for_user(self, user: str, *permission) -> bool:
        return self.enforcer.delete_permission_for_user(user, *permission)

    def delete_permissions_for_user(self, user: str) -> bool:
        return self.enforcer.delete_permissions_for_user(user)

    def get_permissions_for_user(self, user: str) -> list[list[str]]:
        return self.enforcer.get_permissions_for_user(user)

    def has_permission_for_user(self, user: str, *permission) -> bool:
        return self.enforcer.has_permission_for_user(user, *permission)

    def get_implicit_roles_for_user(self, name: str, *domain) -> list[str]:
        return self.enforcer.get_implicit_roles_for_user(name, *domain)

    def get_implicit_permissions_for_user(self, user: str, *domain) -> list[list[str]]:
        return self.enforcer.get_implicit_permissions_for_user(user, *domain)

    def add_function(self, name: str, func: Callable) -> None:
        self.enforcer.add_function(name, func)
