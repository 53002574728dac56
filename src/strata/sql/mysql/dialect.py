from strata.base.dialect import BaseDialect


class MysqlDialect(BaseDialect):
    """Savepoint statements for MySQL"""
