"""Policy rule helpers.

This module converts Casbin rules between their in-memory form (a ``ptype``
plus an ordered list of values) and the fixed-width ``casbin_rule`` row, and
builds the ORM lookups used to match stored rows.
"""

import logging
from typing import Iterable, Optional, Sequence

from casbin import Enforcer
from casbin.model import Model

from authz_permission.engine.exceptions import TupleTooLongError

logger = logging.getLogger(__name__)

MAX_RULE_LENGTH = 6

GROUPING_POLICY_PTYPES = ["g", "g2", "g3", "g4", "g5", "g6"]


def _is_empty(value: Optional[str]) -> bool:
    return value is None or value == ""


def trim_rule(values: Iterable[Optional[str]]) -> list[str]:
    """Drop the trailing empty values of a stored rule.

    Only the trailing run of empty or ``None`` values is removed. Empty values
    followed by a non-empty one are kept (as ``""``) because rule values are
    positional.

    Args:
        values: The ``v0``..``v5`` column values of a row, in order.

    Returns:
        list[str]: The rule values, e.g. ``["a", "", "c"]`` for
        ``["a", None, "c", None, "", None]``.
    """
    values = list(values)
    end = len(values)
    while end > 0 and _is_empty(values[end - 1]):
        end -= 1
    return ["" if value is None else value for value in values[:end]]


def rule_to_columns(ptype: str, rule: Sequence[Optional[str]]) -> dict:
    """Map a rule onto the ``casbin_rule`` columns.

    Args:
        ptype: The policy type of the rule.
        rule: The rule values, at most six.

    Returns:
        dict: Keyword arguments for ``CasbinRule``, e.g.
        ``{"ptype": "p", "v0": "alice", "v1": "data1", "v2": "read"}``.

    Raises:
        TupleTooLongError: If the rule has more than six values.
    """
    if len(rule) > MAX_RULE_LENGTH:
        raise TupleTooLongError(
            f"Rule {list(rule)} has {len(rule)} values, at most {MAX_RULE_LENGTH} can be stored."
        )
    columns = {"ptype": ptype}
    for index, value in enumerate(rule):
        columns[f"v{index}"] = value if value is None else str(value)
    return columns


def rule_lookup(rule: Sequence[Optional[str]]) -> dict:
    """Build the ORM lookup matching stored rows against a partial rule.

    Every non-empty value constrains its column. Empty values and columns past
    the end of the rule are left unconstrained, so ``["alice"]`` matches every
    row whose ``v0`` is ``alice``.

    Raises:
        TupleTooLongError: If the rule has more than six values.
    """
    if len(rule) > MAX_RULE_LENGTH:
        raise TupleTooLongError(
            f"Rule {list(rule)} has {len(rule)} values, at most {MAX_RULE_LENGTH} can be stored."
        )
    return {f"v{index}": value for index, value in enumerate(rule) if not _is_empty(value)}


def field_index_lookup(field_index: int, field_values: Sequence[Optional[str]]) -> dict:
    """Build the ORM lookup for a field-index filter.

    The values constrain the consecutive columns starting at ``field_index``.
    Positions outside ``v0``..``v5`` are ignored and empty values leave their
    column unconstrained. An empty lookup is valid and matches every row.

    Args:
        field_index: Position of the first value (0 for ``v0``).
        field_values: Values for ``v{field_index}``, ``v{field_index + 1}``, ...

    Returns:
        dict: Column lookups, e.g. ``{"v1": "data1"}`` for ``(1, ["data1"])``.
    """
    lookup = {}
    for position in range(MAX_RULE_LENGTH):
        if field_index <= position < field_index + len(field_values):
            value = field_values[position - field_index]
            if not _is_empty(value):
                lookup[f"v{position}"] = value
    return lookup


def load_policy_rule(ptype: str, rule: list[str], model: Model) -> None:
    """Append a decoded rule to the model section of its ptype.

    Rules whose ptype is not defined by the model are skipped, the same way
    ``casbin.persist.load_policy_line`` skips unknown lines.
    """
    sec = ptype[0]
    if sec not in model.model.keys():
        return
    if ptype not in model.model[sec].keys():
        return
    model.model[sec][ptype].policy.append(rule)


def migrate_policy_between_enforcers(
    source_enforcer: Enforcer,
    target_enforcer: Enforcer,
) -> None:
    """Copy the policies of one enforcer into another, skipping existing rules.

    Args:
        source_enforcer (Enforcer): The Casbin enforcer to migrate policies from (e.g., file-based).
        target_enforcer (Enforcer): The Casbin enforcer to migrate policies to (e.g., database).
    """
    try:
        source_enforcer.load_policy()
        policies = source_enforcer.get_policy()
        logger.info(f"Loaded {len(policies)} policies from source enforcer.")

        target_enforcer.load_policy()
        logger.info(f"Target enforcer has {len(target_enforcer.get_policy())} existing policies before migration.")

        new_policies = [policy for policy in policies if not target_enforcer.has_policy(*policy)]
        if new_policies:
            target_enforcer.add_policies(new_policies)
        logger.info(f"Migrated {len(new_policies)} policies, skipped {len(policies) - len(new_policies)}.")

        for grouping_policy_ptype in GROUPING_POLICY_PTYPES:
            try:
                grouping_policies = source_enforcer.get_named_grouping_policy(grouping_policy_ptype)
            except KeyError as e:
                logger.info(f"Skipping {grouping_policy_ptype} policies: {e} not found in source enforcer.")
                continue
            new_groupings = [
                grouping
                for grouping in grouping_policies
                if not target_enforcer.has_named_grouping_policy(grouping_policy_ptype, *grouping)
            ]
            if new_groupings:
                target_enforcer.add_named_grouping_policies(grouping_policy_ptype, new_groupings)
            logger.info(f"Migrated {len(new_groupings)} {grouping_policy_ptype} grouping policies.")
    except Exception as e:
        logger.error(f"Error migrating policies between enforcers: {e}")
        raise
