from __future__ import annotations

import logging
from typing import TYPE_CHECKING, List, Optional

from strata.exception import (
    ConfigurationError,
    StrataError,
    TransactionStateError,
    UnsupportedOperationError,
)

from .interfaces import IsolationValue
from .savepoint import savepoint_name
from .state import (
    INACTIVE,
    Active,
    Inactive,
    TransactionState,
    deeper,
    shallower,
)

if TYPE_CHECKING:
    from strata.base.session import BaseSession

logger = logging.getLogger(__name__)


class NestedTransaction:
    """Nested transactions on top of one database session.

    The first :meth:`begin` opens a real transaction. Every further
    :meth:`begin` before the matching :meth:`commit` or :meth:`rollback`
    creates a savepoint instead, named ``LEVEL<n>`` after the level it was
    created at. Closing an inner level releases or rolls back to that
    savepoint; closing the outermost level commits or rolls back the real
    transaction.

    Example:

    ```python
    transaction = NestedTransaction(session)
    await transaction.begin(IsolationLevel.SERIALIZABLE)
    try:
        await session.execute(sql1)
        await transaction.begin()  # SAVEPOINT LEVEL1
        try:
            await session.execute(sql2)
            await transaction.commit()  # RELEASE SAVEPOINT LEVEL1
        except ExecutionError:
            await transaction.rollback()  # ROLLBACK TO SAVEPOINT LEVEL1
        await transaction.commit()  # COMMIT
    except BaseException:
        await transaction.rollback()
        raise
    ```

    Before each savepoint statement and before the final ``COMMIT`` or
    ``ROLLBACK`` the session is asked whether a physical transaction is
    still open. When the engine has silently committed, the statement is
    skipped and only the level bookkeeping changes.

    One manager serves one logical caller at a time. It holds no lock.
    """

    def __init__(self, session: Optional[BaseSession] = None) -> None:
        self.session = session
        self._state: TransactionState = INACTIVE
        self._context_levels: List[int] = []

    def __str__(self) -> str:
        return f"<NestedTransaction {self._state} on {self.session}>"

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def level(self) -> int:
        """The current nesting level, 0 when no transaction is open"""
        return self._state.level

    @property
    def is_active(self) -> bool:
        """Whether a transaction is open that can be committed"""
        # The driver's in-transaction flag is not consulted here, only by
        # each transition. A level the engine autocommitted stays active so
        # it can still be committed or rolled back.
        return (
            isinstance(self._state, Active)
            and self.session is not None
            and self.session.is_open
        )

    def _transition(self, state: TransactionState) -> None:
        logger.debug(
            "Transaction level %d -> %d on %s",
            self._state.level,
            state.level,
            self.session,
        )
        self._state = state

    async def begin(
        self, isolation_level: Optional[IsolationValue] = None
    ) -> None:
        """Begin a transaction, or a nested one if already active

        Args:
            isolation_level (IsolationValue, optional): Isolation level for
                the outermost transaction. It is set before ``BEGIN`` since
                several engines refuse to change it inside a transaction.
                Ignored when nesting. When ``None`` the engine default is
                used.

        Raises:
            ConfigurationError: If no session is bound
            UnsupportedOperationError: If nesting was requested and the
                engine does not support savepoints
            ExecutionError: If a statement fails
        """
        if self.session is None:
            raise ConfigurationError("NestedTransaction.session must be set")
        await self.session.open()

        if isinstance(self._state, Inactive):
            if isolation_level is not None:
                await self.session.dialect.set_transaction_isolation_level(
                    isolation_level
                )
            await self.session.begin()
            self._transition(deeper(self._state))
            logger.info("Transaction started on %s", self.session)
            await self.session.trigger(self.session.EVENT_BEGIN_TRANSACTION)
            return

        dialect = self.session.dialect
        if not dialect.supports_savepoint():
            raise UnsupportedOperationError(
                "Transaction not started: nested transaction not supported "
                f"by {dialect}"
            )
        # make sure the transaction wasn't autocommitted
        if self.session.in_transaction():
            await dialect.create_savepoint(savepoint_name(self.level))
        self._transition(deeper(self._state))

    async def commit(self) -> None:
        """Commit the current level

        Raises:
            TransactionStateError: If the transaction is not active
            ExecutionError: If a statement fails. The level has already been
                decreased when this is raised.
        """
        if not self.is_active:
            raise TransactionStateError(
                "Failed to commit transaction: transaction was inactive"
            )
        assert self.session is not None

        self._transition(shallower(self._state))  # type: ignore[arg-type]
        if isinstance(self._state, Inactive):
            # make sure the transaction wasn't autocommitted
            if self.session.in_transaction():
                await self.session.commit()
            logger.info("Transaction committed on %s", self.session)
            await self.session.trigger(self.session.EVENT_COMMIT_TRANSACTION)
            return

        dialect = self.session.dialect
        if dialect.supports_savepoint():
            if self.session.in_transaction():
                await dialect.release_savepoint(savepoint_name(self.level))
        else:
            # begin() raises for this case, commit() only skips the
            # statement. Reachable when savepoints are disabled mid-nesting.
            logger.warning(
                "Savepoint %s not released: savepoints not supported by %s",
                savepoint_name(self.level),
                dialect,
            )

    async def rollback(self) -> None:
        """Roll back the current level

        Does nothing when the transaction is not active, so it is safe to
        call from cleanup code that may run after the transaction ended.

        Raises:
            ExecutionError: If a statement fails. The level has already been
                decreased when this is raised.
        """
        if not self.is_active:
            # the transaction may have been committed already, with a
            # commit event handler raising afterwards
            return
        assert self.session is not None

        self._transition(shallower(self._state))  # type: ignore[arg-type]
        if isinstance(self._state, Inactive):
            # make sure the transaction wasn't autocommitted
            if self.session.in_transaction():
                await self.session.rollback()
            logger.info("Transaction rolled back on %s", self.session)
            await self.session.trigger(
                self.session.EVENT_ROLLBACK_TRANSACTION
            )
            return

        dialect = self.session.dialect
        if dialect.supports_savepoint():
            if self.session.in_transaction():
                await dialect.rollback_savepoint(savepoint_name(self.level))
        else:
            # Same gap as in commit(): nothing is undone for this level.
            logger.warning(
                "Savepoint %s not rolled back: savepoints not supported by %s",
                savepoint_name(self.level),
                dialect,
            )

    async def set_isolation_level(self, level: IsolationValue) -> None:
        """Set the isolation level of the active transaction

        Not every engine accepts this once the transaction has started;
        prefer passing the level to :meth:`begin` where that works.
        PostgreSQL is the exception and only honours it here.

        Raises:
            TransactionStateError: If the transaction is not active
            ExecutionError: If the statement fails
        """
        if not self.is_active:
            raise TransactionStateError(
                "Failed to set isolation level: transaction was inactive"
            )
        assert self.session is not None
        await self.session.dialect.set_transaction_isolation_level(level)

    async def __aenter__(self):
        await self.begin()
        self._context_levels.append(self.level)
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        level = self._context_levels.pop()
        # The block may have closed its own level already
        if not self.is_active or self.level != level:
            return False
        try:
            if exc_type is None:
                await self.commit()
            else:
                await self.rollback()
        except StrataError as e:
            logger.error("Error in context manager exit for %s: %s", self, e)
            # Re-raise only if the block itself succeeded
            if exc_type is None:
                raise
        return False
