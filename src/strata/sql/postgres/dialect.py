from strata.base.dialect import BaseDialect


class PostgresDialect(BaseDialect):
    """Savepoint statements for PostgreSQL

    ``SET TRANSACTION ISOLATION LEVEL`` only affects a transaction that is
    already open, so with PostgreSQL call
    :meth:`NestedTransaction.set_isolation_level` after ``begin`` instead of
    passing the level to ``begin``.
    """
