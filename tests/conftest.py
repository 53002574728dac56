import pytest

from strata.transaction import NestedTransaction

from .recording import RecordingSession


@pytest.fixture
def session():
    return RecordingSession()


@pytest.fixture
def no_savepoint_session():
    return RecordingSession(enable_savepoint=False)


@pytest.fixture
def transaction(session):
    return NestedTransaction(session)


@pytest.fixture
async def sqlite_session():
    from strata import SQLiteSession

    session = SQLiteSession(":memory:")
    await session.open()
    await session.execute(
        "CREATE TABLE accounts (id INTEGER PRIMARY KEY, owner TEXT)"
    )
    yield session
    await session.close()
