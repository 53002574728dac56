"""
Savepoint naming for nested transaction emulation.
"""

SAVEPOINT_PREFIX = "LEVEL"


def savepoint_name(level: int) -> str:
    """Name of the savepoint guarding the move from ``level`` to ``level + 1``.

    ``begin`` creates it with the level held before incrementing, and
    ``commit``/``rollback`` release or roll back to it with the level held
    after decrementing, so both ends agree on the name.
    """
    if level < 1:
        raise ValueError(f"Savepoints start at level 1, got {level}")
    return f"{SAVEPOINT_PREFIX}{level}"
