"""
Nested transactions for strata sessions, emulated with savepoints.
"""

from .interfaces import IsolationLevel, IsolationValue, RawIsolationLevel
from .nested import NestedTransaction
from .savepoint import savepoint_name
from .state import Active, Inactive, TransactionState

__all__ = [
    "NestedTransaction",
    "IsolationLevel",
    "IsolationValue",
    "RawIsolationLevel",
    "Active",
    "Inactive",
    "TransactionState",
    "savepoint_name",
]
