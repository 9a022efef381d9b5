"""
Filter Implementation for Casbin Policy Selection.

This module provides the filters accepted by ``DatabaseAdapter.load_filtered_policy``
to load only a subset of the stored policy rules. Three representations are
supported, each a variant of ``PolicyFilter``:

- ``RawFilter``: a raw SQL predicate passed through to the database.
- ``FieldFilter``: a mapping of column name to required value, ANDed together.
- ``PredicateFilter``: a ``Q`` object or a callable that narrows the queryset.

Bare values are coerced with ``as_policy_filter``: a string becomes a
``RawFilter``, a mapping a ``FieldFilter`` and a ``Q`` or callable a
``PredicateFilter``.
"""

from collections.abc import Mapping
from enum import Enum
from typing import Any, Callable, Union

import attr
from django.db.models import BooleanField, Q, QuerySet
from django.db.models.expressions import RawSQL

from authz_permission.engine.exceptions import InvalidFilterKindError


class PolicyAttribute(Enum):
    """
    Enumeration of Casbin policy attributes.

    These attributes map to the columns of the CasbinRule table, but their meaning
    depends on the policy type (ptype).
    """

    PTYPE = "ptype"
    """ptype (str): Type of policy"""

    V0 = "v0"
    """v0 (str): First policy value."""

    V1 = "v1"
    """v1 (str): Second policy value."""

    V2 = "v2"
    """v2 (str): Third policy value."""

    V3 = "v3"
    """v3 (str): Fourth policy value."""

    V4 = "v4"
    """v4 (str): Fifth policy value."""

    V5 = "v5"
    """v5 (str): Sixth policy value."""


POLICY_ATTRIBUTE_NAMES = frozenset(attribute.value for attribute in PolicyAttribute)


class PolicyFilter:
    """Base class of the filter representations."""

    def apply(self, queryset: QuerySet) -> QuerySet:
        """Restrict the CasbinRule queryset to the rows selected by this filter."""
        raise NotImplementedError("Subclasses must implement apply method.")


@attr.define
class RawFilter(PolicyFilter):
    """
    Raw SQL predicate over the ``casbin_rule`` table.

    The predicate is passed to the database verbatim. It is the caller's
    responsibility to keep it free of untrusted input; use ``params`` for
    values, e.g. ``RawFilter("v0 = %s", ["alice"])``.
    """

    where: str
    params: list = attr.field(factory=list)

    def apply(self, queryset: QuerySet) -> QuerySet:
        return queryset.filter(RawSQL(self.where, list(self.params), output_field=BooleanField()))


@attr.define
class FieldFilter(PolicyFilter):
    """
    Equality constraints on policy columns, combined with AND logic.

    Keys must be ``PolicyAttribute`` values (``ptype``, ``v0``..``v5``), e.g.
    ``FieldFilter({"ptype": "p", "v0": "alice"})``.
    """

    fields: dict = attr.field(factory=dict)

    @fields.validator
    def _check_fields(self, attribute, value):  # pylint: disable=unused-argument
        unknown = set(value) - POLICY_ATTRIBUTE_NAMES
        if unknown:
            raise InvalidFilterKindError(f"Unknown policy attributes in filter: {sorted(unknown)}")

    def apply(self, queryset: QuerySet) -> QuerySet:
        return queryset.filter(**self.fields)


@attr.define
class PredicateFilter(PolicyFilter):
    """
    Opaque query modifier supplied by the caller.

    ``predicate`` is either a ``Q`` object, applied with ``filter()``, or a
    callable taking the queryset and returning the narrowed queryset.
    """

    predicate: Union[Q, Callable[[QuerySet], QuerySet]]

    def apply(self, queryset: QuerySet) -> QuerySet:
        if isinstance(self.predicate, Q):
            return queryset.filter(self.predicate)
        return self.predicate(queryset)


def as_policy_filter(value: Any) -> PolicyFilter:
    """Return the ``PolicyFilter`` for a filter value.

    Args:
        value: A ``PolicyFilter``, a raw SQL string, a mapping of column
            to value, a ``Q`` object or a callable.

    Returns:
        PolicyFilter: The matching filter variant.

    Raises:
        InvalidFilterKindError: If the value is none of the supported representations.
    """
    if isinstance(value, PolicyFilter):
        return value
    if isinstance(value, str):
        return RawFilter(value)
    if isinstance(value, Mapping):
        return FieldFilter(dict(value))
    if isinstance(value, Q) or callable(value):
        return PredicateFilter(value)
    raise InvalidFilterKindError(f"Invalid filter type: {type(value).__name__}")
