"""
Django ORM Casbin Adapter.

This module provides the adapter that persists Casbin policy rules in the
``casbin_rule`` table through the Django ORM. It implements the pycasbin
adapter contracts for plain persistence, batch operations, updates and
filtered loading:

- Rules are stored one per row, values in the ``v0``..``v5`` columns.
  Trailing empty columns are dropped when a row is read back.
- Multi-row mutations run in a single database transaction and roll back
  entirely when any step fails.
- After each mutation the ``policy_saved`` / ``policy_deleted`` signals are
  sent so the cached rule list used by ``load_policy`` is refreshed.
"""

import logging
import threading
from typing import Any, Optional, Sequence

from casbin import persist
from casbin.model import Model
from casbin.persist import BatchAdapter, FilteredAdapter
from casbin.persist.adapters.update_adapter import UpdateAdapter
from django.conf import settings
from django.db import transaction
from django.utils import timezone

from authz_permission.engine.exceptions import RuleNotFoundError
from authz_permission.engine.filter import as_policy_filter
from authz_permission.engine.utils import (
    field_index_lookup,
    load_policy_rule,
    rule_lookup,
    rule_to_columns,
    trim_rule,
)
from authz_permission.models import VALUE_FIELDS, CasbinRule
from authz_permission.signals import policy_deleted, policy_saved

logger = logging.getLogger(__name__)

POLICY_SECTIONS = ("p", "g")


class DatabaseAdapter(BatchAdapter, FilteredAdapter, UpdateAdapter):
    """
    Casbin adapter backed by the ``CasbinRule`` Django model.

    Inherits from:
        BatchAdapter: Adds and removes several rules in one call.
        FilteredAdapter: Loads only the rules selected by a filter.
        UpdateAdapter: Updates stored rules in place.

    Attributes:
        db_alias (str): The Django database alias used for every query.
    """

    def __init__(self, db_alias: Optional[str] = None):
        """Initialize the adapter.

        Args:
            db_alias: Database alias to use. Defaults to the ``CASBIN_DB_ALIAS``
                setting, or ``"default"``.
        """
        self.db_alias = db_alias or getattr(settings, "CASBIN_DB_ALIAS", "default")
        self._filtered = False
        self._filtered_lock = threading.Lock()

    @property
    def rules(self):
        """Queryset of the stored rules on the adapter's database."""
        return CasbinRule.objects.using(self.db_alias)

    def is_filtered(self) -> bool:
        """
        Check whether the last load was a filtered (partial) load.

        Returns:
            bool: True if the model holds only the rules selected by a filter.
        """
        with self._filtered_lock:
            return self._filtered

    def set_filtered(self, filtered: bool) -> None:
        """Overwrite the filtered flag."""
        with self._filtered_lock:
            self._filtered = filtered

    def load_policy(self, model: Model) -> None:
        """
        Load every stored rule into the model, in storage order.

        Args:
            model (Model): The Casbin model to load policy rules into.
        """
        rows = CasbinRule.objects.db_manager(self.db_alias).get_all_from_cache()
        for ptype, *values in rows:
            load_policy_rule(ptype, trim_rule(values), model)
        self.set_filtered(False)
        logger.info(f"Loaded {len(rows)} policy rules from database alias '{self.db_alias}'")

    def load_filtered_policy(self, model: Model, filter: Any) -> None:  # pylint: disable=redefined-builtin
        """
        Load only the stored rules selected by the filter.

        Each row is turned into a policy line ``ptype, v0, v1, ...`` and parsed
        with ``casbin.persist.load_policy_line``. Only trailing empty columns
        are dropped: an empty column between two set ones stays in the line as
        an empty token, unlike a line built from the non-empty columns alone,
        so every value keeps its position and matches what ``load_policy``
        loads. The adapter is marked as filtered afterwards, even when no row
        matched.

        IMPORTANT: This method is used internally by the ``enforcer.load_filtered_policy()``
            method. Do not call this method directly. If you need to load policy rules, use
            the ``enforcer.load_filtered_policy()`` method.

        Args:
            model (Model): The Casbin model to load policy rules into.
            filter: A ``PolicyFilter`` or a value accepted by ``as_policy_filter``.

        Raises:
            InvalidFilterKindError: If the filter is not a supported representation.
        """
        policy_filter = as_policy_filter(filter)
        queryset = policy_filter.apply(self.rules).order_by("id")
        count = 0
        for rule in queryset:
            persist.load_policy_line(str(rule), model)
            count += 1
        self.set_filtered(True)
        logger.info(f"Loaded {count} policy rules with filter {policy_filter!r}")

    def save_policy(self, model: Model) -> bool:
        """
        Store every rule of the model's ``p`` and ``g`` sections.

        Existing rows are not deleted; callers wanting a clean overwrite must
        clear the table first.

        Args:
            model (Model): The Casbin model holding the rules to save.

        Returns:
            bool: True once the rules are stored.
        """
        rules = []
        for sec in POLICY_SECTIONS:
            if sec not in model.model.keys():
                continue
            for ptype, ast in model.model[sec].items():
                for rule in ast.policy:
                    rules.append(CasbinRule(**rule_to_columns(ptype, rule)))
        with transaction.atomic(using=self.db_alias):
            self.rules.bulk_create(rules)
        policy_saved.send(sender=CasbinRule, ptype=None)
        logger.info(f"Saved {len(rules)} policy rules")
        return True

    def add_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:  # pylint: disable=unused-argument
        """Store a single rule.

        Args:
            sec: Model section of the rule (``p`` or ``g``).
            ptype: Policy type of the rule.
            rule: The rule values.

        Returns:
            bool: True once the rule is stored.
        """
        self.rules.create(**rule_to_columns(ptype, rule))
        policy_saved.send(sender=CasbinRule, ptype=ptype)
        return True

    def add_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> bool:  # pylint: disable=unused-argument
        """Store several rules with a single insert.

        Every row of the batch is stamped with the same creation time. Nothing
        is stored if the insert fails.

        Returns:
            bool: True once the rules are stored.
        """
        now = timezone.now()
        rows = [CasbinRule(**rule_to_columns(ptype, rule), created_at=now, updated_at=now) for rule in rules]
        with transaction.atomic(using=self.db_alias):
            self.rules.bulk_create(rows)
        policy_saved.send(sender=CasbinRule, ptype=ptype)
        return True

    def remove_policy(self, sec: str, ptype: str, rule: Sequence[str]) -> bool:  # pylint: disable=unused-argument
        """Delete the stored rules matching a rule.

        Only the non-empty values of ``rule`` are compared, so a shorter rule
        matches every stored rule that starts with it.

        Returns:
            bool: True once the matching rows are deleted.
        """
        self.rules.filter(ptype=ptype, **rule_lookup(rule)).delete()
        policy_deleted.send(sender=CasbinRule, ptype=ptype)
        return True

    def remove_policies(self, sec: str, ptype: str, rules: Sequence[Sequence[str]]) -> bool:
        """Delete the stored rules matching any of the rules, atomically.

        Returns:
            bool: True once every matching row is deleted.
        """
        with transaction.atomic(using=self.db_alias):
            for rule in rules:
                self.remove_policy(sec, ptype, rule)
        return True

    def remove_filtered_policy(self, sec: str, ptype: str, field_index: int, *field_values: str) -> list[list[str]]:
        """Delete the stored rules matching a field-index filter.

        Args:
            sec: Model section of the rules.
            ptype: Policy type of the rules.
            field_index: Position of the first filter value (0 for ``v0``).
            *field_values: Values for the consecutive positions. Empty values
                match anything; no values at all match every rule of ``ptype``.

        Returns:
            list[list[str]]: The removed rules, in storage order.
        """
        with transaction.atomic(using=self.db_alias):
            removed_rules = self._remove_filtered_policy(ptype, field_index, field_values)
        policy_deleted.send(sender=CasbinRule, ptype=ptype)
        return removed_rules

    def _remove_filtered_policy(
        self, ptype: str, field_index: int, field_values: Sequence[str]
    ) -> list[list[str]]:
        """Delete the rows matching a field-index filter and return their rules."""
        queryset = self.rules.filter(ptype=ptype, **field_index_lookup(field_index, field_values))
        rows = list(queryset.order_by("id").values_list("id", *VALUE_FIELDS))
        removed_rules = [trim_rule(values) for _, *values in rows]
        self.rules.filter(id__in=[row[0] for row in rows]).delete()
        logger.info(f"Removed {len(removed_rules)} '{ptype}' rules with field index {field_index} {list(field_values)}")
        return removed_rules

    def update_policy(self, sec: str, ptype: str, old_rule: Sequence[str], new_rule: Sequence[str]) -> bool:  # pylint: disable=unused-argument
        """Overwrite a stored rule with new values.

        The stored rule is found like in ``remove_policy``. When several rows
        match, the one with the lowest id is updated. Only the positions
        present in ``new_rule`` are written; other columns keep their values.

        Returns:
            bool: True once the rule is updated.

        Raises:
            RuleNotFoundError: If no stored rule matches ``old_rule``.
        """
        instance = self.rules.filter(ptype=ptype, **rule_lookup(old_rule)).order_by("id").first()
        if instance is None:
            raise RuleNotFoundError(f"No '{ptype}' rule matches {list(old_rule)}")

        columns = rule_to_columns(ptype, new_rule)
        del columns["ptype"]
        for field, value in columns.items():
            setattr(instance, field, value)
        instance.updated_at = timezone.now()
        instance.save(using=self.db_alias, update_fields=[*columns, "updated_at"])
        policy_saved.send(sender=CasbinRule, ptype=ptype)
        return True

    def update_policies(
        self,
        sec: str,
        ptype: str,
        old_rules: Sequence[Sequence[str]],
        new_rules: Sequence[Sequence[str]],
    ) -> bool:
        """Update several stored rules atomically.

        ``old_rules[i]`` is replaced by ``new_rules[i]``. If any pair fails,
        none of the updates is kept.

        Raises:
            ValueError: If both lists have different lengths.
            RuleNotFoundError: If an old rule is not stored.
        """
        if len(old_rules) != len(new_rules):
            raise ValueError(f"Got {len(old_rules)} old rules for {len(new_rules)} new rules.")
        with transaction.atomic(using=self.db_alias):
            for old_rule, new_rule in zip(old_rules, new_rules):
                self.update_policy(sec, ptype, old_rule, new_rule)
        return True

    def update_filtered_policies(
        self,
        sec: str,
        ptype: str,
        new_rules: Sequence[Sequence[str]],
        field_index: int,
        *field_values: str,
    ) -> list[list[str]]:
        """Replace the rules matching a field-index filter with new rules.

        The removal and the insertion run in one transaction. The filter only
        selects what is deleted; ``new_rules`` are inserted as given.

        Returns:
            list[list[str]]: The removed rules.
        """
        with transaction.atomic(using=self.db_alias):
            old_rules = self._remove_filtered_policy(ptype, field_index, field_values)
            self.add_policies(sec, ptype, new_rules)
        policy_deleted.send(sender=CasbinRule, ptype=ptype)
        return old_rules
