"""
Transaction states for the nested transaction manager.

A manager is either ``Inactive`` or ``Active(level)``. All transitions go
through :func:`deeper` and :func:`shallower` so the nesting arithmetic lives
in one place.
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Inactive:
    """No transaction has been begun, or the outermost one has finished"""

    @property
    def level(self) -> int:
        return 0

    def __str__(self) -> str:
        return "<Inactive>"


@dataclass(frozen=True)
class Active:
    """A real transaction is open with ``level`` logical transactions"""

    level: int

    def __post_init__(self):
        if self.level < 1:
            raise ValueError(f"Active level must be >= 1, got {self.level}")

    def __str__(self) -> str:
        return f"<Active level={self.level}>"


TransactionState = Union[Inactive, Active]

INACTIVE = Inactive()


def deeper(state: TransactionState) -> Active:
    """State after one more successful begin"""
    return Active(state.level + 1)


def shallower(state: Active) -> TransactionState:
    """State after one commit or rollback"""
    if state.level == 1:
        return INACTIVE
    return Active(state.level - 1)
