"""
Signals sent by the Casbin database adapter after policy rows change.

Both signals are sent with ``sender=CasbinRule`` and a ``ptype`` keyword
argument naming the policy type that was touched.
"""

from django.dispatch import Signal

# Sent after rules are inserted or updated.
policy_saved = Signal()

# Sent after rules are deleted.
policy_deleted = Signal()
