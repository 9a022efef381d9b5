"""Models for the authorization engine."""

from django.conf import settings
from django.core.cache import cache
from django.db import models, transaction
from django.utils import timezone

from authz_permission.engine.utils import MAX_RULE_LENGTH, trim_rule

__all__ = ["CasbinRule", "CasbinRuleManager", "VALUE_FIELDS"]

VALUE_FIELDS = tuple(f"v{i}" for i in range(MAX_RULE_LENGTH))


def get_policy_cache_key() -> str:
    """Return the cache key holding every stored rule."""
    return getattr(settings, "CASBIN_CACHE_KEY", "casbin_rule_all")


class CasbinRuleManager(models.Manager):
    """Manager for CasbinRule with a cache-backed read of all rules."""

    def get_all_from_cache(self) -> list[tuple]:
        """Return every stored rule as ``(ptype, v0, ..., v5)`` tuples.

        The rows are ordered by id and kept in the Django cache until a
        mutation invalidates the entry (see ``authz_permission.handlers``).
        Inside a transaction the rows are read from the database and the
        cache is neither read nor filled, as the transaction may still roll
        back.

        Returns:
            list[tuple]: One tuple per stored row.
        """
        queryset = self.get_queryset().order_by("id").values_list("ptype", *VALUE_FIELDS)
        if transaction.get_connection(self.db).in_atomic_block:
            return list(queryset)

        cache_key = get_policy_cache_key()
        rows = cache.get(cache_key)
        if rows is None:
            rows = list(queryset)
            cache.set(cache_key, rows, getattr(settings, "CASBIN_CACHE_TIMEOUT", None))
        return rows


class CasbinRule(models.Model):
    """A Casbin policy rule stored as one fixed-width row.

    .. no_pii:

    ``ptype`` names the kind of rule (``p`` for permissions, ``g`` for role
    grouping, ...). ``v0`` to ``v5`` hold the rule values in order; unused
    trailing columns are empty.
    """

    ptype = models.CharField(max_length=255, db_index=True)
    v0 = models.CharField(max_length=255, null=True, blank=True)
    v1 = models.CharField(max_length=255, null=True, blank=True)
    v2 = models.CharField(max_length=255, null=True, blank=True)
    v3 = models.CharField(max_length=255, null=True, blank=True)
    v4 = models.CharField(max_length=255, null=True, blank=True)
    v5 = models.CharField(max_length=255, null=True, blank=True)
    created_at = models.DateTimeField(default=timezone.now)
    updated_at = models.DateTimeField(default=timezone.now)

    objects = CasbinRuleManager()

    class Meta:
        db_table = "casbin_rule"
        verbose_name = "Casbin Rule"
        verbose_name_plural = "Casbin Rules"

    def to_rule(self) -> list[str]:
        """Return the rule values with trailing empty columns removed."""
        return trim_rule([getattr(self, field) for field in VALUE_FIELDS])

    def __str__(self):
        return ", ".join([self.ptype, *self.to_rule()])

    def __repr__(self):
        return f"<CasbinRule {self.id}: {str(self)!r}>"
