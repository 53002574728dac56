import pytest

from strata import (
    MysqlDialect,
    PostgresDialect,
    SQLiteDialect,
    SQLServerDialect,
)
from strata.base.dialect import BaseDialect
from strata.exception import ExecutionError, UnsupportedOperationError
from strata.transaction import (
    IsolationLevel,
    NestedTransaction,
    RawIsolationLevel,
)

from .recording import RecordingSession


class NoSavepointDialect(BaseDialect):
    savepoint_support = False


@pytest.mark.parametrize(
    "dialect_class", [BaseDialect, PostgresDialect, MysqlDialect]
)
async def test_ansi_savepoint_statements(dialect_class):
    session = RecordingSession(dialect_class=dialect_class)
    dialect = session.dialect

    await dialect.create_savepoint("LEVEL1")
    await dialect.release_savepoint("LEVEL1")
    await dialect.rollback_savepoint("LEVEL2")
    await dialect.set_transaction_isolation_level(
        IsolationLevel.REPEATABLE_READ
    )

    assert isinstance(dialect, dialect_class)
    assert session.statements == [
        "SAVEPOINT LEVEL1",
        "RELEASE SAVEPOINT LEVEL1",
        "ROLLBACK TO SAVEPOINT LEVEL2",
        "SET TRANSACTION ISOLATION LEVEL REPEATABLE READ",
    ]


async def test_sqlserver_savepoint_statements():
    session = RecordingSession(dialect_class=SQLServerDialect)
    dialect = session.dialect

    await dialect.create_savepoint("LEVEL1")
    await dialect.release_savepoint("LEVEL1")
    await dialect.rollback_savepoint("LEVEL1")
    await dialect.set_transaction_isolation_level(
        RawIsolationLevel("SNAPSHOT")
    )

    assert session.statements == [
        "SAVE TRANSACTION LEVEL1",
        "ROLLBACK TRANSACTION LEVEL1",
        "SET TRANSACTION ISOLATION LEVEL SNAPSHOT",
    ]


async def test_sqlserver_nested_commit():
    session = RecordingSession(dialect_class=SQLServerDialect)
    transaction = NestedTransaction(session)

    await transaction.begin()
    await transaction.begin()
    await transaction.commit()
    await transaction.commit()

    assert session.statements == [
        "BEGIN",
        "SAVE TRANSACTION LEVEL1",
        "COMMIT",
    ]


@pytest.mark.parametrize(
    "level,expected",
    [
        (IsolationLevel.SERIALIZABLE, "PRAGMA read_uncommitted = False"),
        (IsolationLevel.READ_UNCOMMITTED, "PRAGMA read_uncommitted = True"),
        ("SERIALIZABLE", "PRAGMA read_uncommitted = False"),
    ],
)
async def test_sqlite_isolation_levels(level, expected):
    session = RecordingSession(dialect_class=SQLiteDialect)

    await session.dialect.set_transaction_isolation_level(level)

    assert session.statements == [expected]


@pytest.mark.parametrize(
    "level",
    [
        IsolationLevel.READ_COMMITTED,
        IsolationLevel.REPEATABLE_READ,
        RawIsolationLevel("SNAPSHOT"),
    ],
)
async def test_sqlite_unsupported_isolation_levels(level):
    session = RecordingSession(dialect_class=SQLiteDialect)
    transaction = NestedTransaction(session)

    with pytest.raises(UnsupportedOperationError):
        await transaction.begin(level)

    assert session.statements == []
    assert transaction.level == 0


def test_supports_savepoint():
    assert RecordingSession().dialect.supports_savepoint()
    assert not RecordingSession(
        enable_savepoint=False
    ).dialect.supports_savepoint()
    assert not RecordingSession(
        dialect_class=NoSavepointDialect
    ).dialect.supports_savepoint()


async def test_dialect_without_savepoints_refuses_nesting():
    session = RecordingSession(dialect_class=NoSavepointDialect)
    transaction = NestedTransaction(session)
    await transaction.begin()

    with pytest.raises(UnsupportedOperationError):
        await transaction.begin()
    assert transaction.level == 1


async def test_dialect_errors_propagate_unchanged():
    session = RecordingSession()
    session.fail_on.add("SAVEPOINT LEVEL1")

    with pytest.raises(ExecutionError):
        await session.dialect.create_savepoint("LEVEL1")


def test_dialect_is_cached_per_session():
    session = RecordingSession()

    assert session.dialect is session.dialect
    assert session.dialect.session is session
