"""Exceptions raised by the Casbin database adapter.

Storage failures are not wrapped: connection errors, integrity errors and
transaction conflicts reach the caller as Django ``DatabaseError`` subclasses.
"""


class AuthzPermissionError(Exception):
    """Base class for adapter errors."""


class InvalidFilterKindError(AuthzPermissionError, TypeError):
    """The filter passed to a filtered load is not a supported representation."""


class RuleNotFoundError(AuthzPermissionError, LookupError):
    """No stored rule matches the rule targeted by an update."""


class TupleTooLongError(AuthzPermissionError, ValueError):
    """A rule has more values than the ``v0``..``v5`` columns can hold."""
