from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections import defaultdict, namedtuple
from inspect import isawaitable
from typing import (
    Any,
    Awaitable,
    Callable,
    DefaultDict,
    List,
    Optional,
    Set,
    Tuple,
    Type,
    TypeVar,
    Union,
)
from urllib.parse import urlparse

from strata.base.dialect import BaseDialect
from strata.exception import ConfigurationError, ExecutionError, StrataError
from strata.transaction.interfaces import IsolationValue
from strata.transaction.nested import NestedTransaction

logger = logging.getLogger(__name__)

T = TypeVar("T")
EventHandler = Callable[["BaseSession"], Any]

UrlMapping = namedtuple("UrlMapping", ("key", "cast"))


URLPARSE_MAPPING = {
    "hostname": UrlMapping("_host", str),
    "username": UrlMapping("_user", str),
    "password": UrlMapping("_password", str),
    "port": UrlMapping("_port", int),
    "path": UrlMapping("_db", lambda value: value.replace("/", "")),
    "query": UrlMapping("_query", str),
}


class BaseSession(ABC):
    """One physical database session.

    A session owns a single connection for its lifetime. It issues the real
    ``BEGIN``/``COMMIT``/``ROLLBACK`` statements, reports whether the driver
    is actually inside a transaction, and hands out the engine
    :class:`~strata.base.dialect.BaseDialect` used for savepoints.

    Nested transactions are driven by a
    :class:`~strata.transaction.NestedTransaction` bound to the session,
    usually obtained through :meth:`begin_transaction` or
    :meth:`transaction`.
    """

    scheme = "dummy"
    schemes: Tuple[str, ...] = ()
    dialect_class: Type[BaseDialect] = BaseDialect
    registered_sessions: Set[Type[BaseSession]] = set()

    EVENT_BEGIN_TRANSACTION = "begin_transaction"
    EVENT_COMMIT_TRANSACTION = "commit_transaction"
    EVENT_ROLLBACK_TRANSACTION = "rollback_transaction"

    def __init_subclass__(cls) -> None:
        BaseSession.registered_sessions.add(cls)

    @abstractmethod
    def _setup(self): ...

    @abstractmethod
    async def _connect(self): ...

    @abstractmethod
    async def _disconnect(self): ...

    @abstractmethod
    async def _execute(self, sql: str, params: Optional[Any] = None): ...

    @abstractmethod
    def in_transaction(self) -> bool:
        """Whether the driver reports an open physical transaction"""

    def __init__(
        self,
        dsn: Optional[str] = None,
        host: Optional[str] = None,
        port: Optional[int] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        db: Optional[str] = None,
        query: Optional[str] = None,
        min_size: int = 1,
        max_size: Optional[int] = None,
        enable_savepoint: bool = True,
    ) -> None:
        """Session initialization.

        Args:
            dsn (str, optional): DB data source name
            host (str, optional): DB address URL or IP
            port (int, optional): DB port
            user (str, optional): DB user
            password (str, optional): DB password
            db (str, optional): DB name
            query (str, optional): DB query parameters. Defaults to None
            min_size (int, optional): Minimum number of connections in the
                pool backing the session, where there is one. Defaults to 1
            max_size (int, optional): Maximum number of connections in the
                pool backing the session. Defaults to None
            enable_savepoint (bool, optional): Whether nested transactions
                may use savepoints. Defaults to True
        """

        if dsn and host:
            raise ConfigurationError("Cannot connect to DB using host and dsn")

        if not dsn:
            if port and (
                not isinstance(port, int) or port not in range(0, 65536)
            ):
                raise ConfigurationError(
                    "port: must be an integer between 0 and 65535"
                )

            if host and (not isinstance(host, str) or not len(host) > 0):
                raise ConfigurationError(
                    "host: must be a string at least 1 character long"
                )

        if password is not None and (
            not isinstance(password, str) or not len(password) > 0
        ):
            raise ConfigurationError(
                "password: must be a string at least 1 character long"
            )

        self._dsn = dsn
        self._host = host
        self._port = port
        self._user = user
        self._password = password
        self._db = db
        self._query = query
        self._min_size = min_size
        self._max_size = max_size
        self._full_dsn: Optional[str] = None
        self._connection: Any = None
        self._dialect: Optional[BaseDialect] = None
        self._transaction: Optional[NestedTransaction] = None
        self._handlers: DefaultDict[str, List[EventHandler]] = defaultdict(
            list
        )
        self.enable_savepoint = enable_savepoint

        self._populate_connection_args()
        self._populate_dsn()
        self._setup()

    @classmethod
    def from_dsn(cls, dsn: str, **options: Any) -> BaseSession:
        return cls(dsn=dsn, **options)

    def __str__(self) -> str:
        return f"<{self.__class__.__name__} {self.dsn}>"

    def _populate_connection_args(self):
        dsn = self.dsn or ""
        if dsn:
            parts = urlparse(dsn)
            # Default values for common database ports
            defaults = {
                "port": 5432 if "postgres" in dsn else None,
                "hostname": "localhost",
                "username": None,
                "password": None,
                "path": "/",
                "query": "",
            }
            for key, mapping in URLPARSE_MAPPING.items():
                if not getattr(self, mapping.key):
                    value = getattr(parts, key, None)
                    if value is None:
                        value = defaults.get(key)
                    if value is not None:
                        setattr(self, mapping.key, mapping.cast(value))

    def _populate_dsn(self):
        location = self.host or ""
        location += f":{self.port}" if self.port else ""
        location += f"/{self.db or ''}"
        user = self.user or ""

        if self.password:
            self._dsn = f"{self.scheme}://{user}:...@{location}"
            self._full_dsn = (
                f"{self.scheme}://{user}:{self.password}@{location}"
            )
        else:
            credentials = f"{user}@" if user else ""
            self._dsn = f"{self.scheme}://{credentials}{location}"
            self._full_dsn = self._dsn
        self._full_dsn += f"?{self._query}" if self._query else ""

    @property
    def dsn(self):
        return self._dsn

    @property
    def host(self):
        return self._host

    @property
    def port(self):
        return self._port

    @property
    def user(self):
        return self._user

    @property
    def password(self):
        return self._password

    @property
    def db(self):
        return self._db

    @property
    def full_dsn(self):
        return self._full_dsn

    @property
    def min_size(self):
        return self._min_size

    @property
    def max_size(self):
        return self._max_size

    @property
    def is_open(self) -> bool:
        return self._connection is not None

    @property
    def dialect(self) -> BaseDialect:
        """The savepoint capability of the engine behind this session"""
        if self._dialect is None:
            self._dialect = self.dialect_class(self)
        return self._dialect

    async def open(self) -> None:
        """Open the connection, unless it is already open"""
        if self.is_open:
            return
        logger.debug("Opening %s", self)
        try:
            await self._connect()
        except StrataError:
            raise
        except Exception as e:
            logger.error("Failed to open %s: %s", self, e)
            raise ExecutionError(f"Failed to open {self}: {e}") from e

    async def close(self) -> None:
        """Close the connection, unless it is already closed"""
        if not self.is_open:
            return
        logger.debug("Closing %s", self)
        await self._disconnect()
        self._connection = None
        self._transaction = None

    async def execute(self, sql: str, params: Optional[Any] = None) -> Any:
        """Run one statement on the session connection

        Args:
            sql (str): The statement
            params (Any, optional): Parameters bound to the statement

        Raises:
            ExecutionError: When the driver fails to run the statement
        """
        await self.open()
        logger.debug("Executing %r on %s", sql, self)
        try:
            return await self._execute(sql, params)
        except StrataError:
            raise
        except Exception as e:
            logger.error("Failed to execute %r on %s: %s", sql, self, e)
            raise ExecutionError(f"Failed to execute {sql!r}: {e}") from e

    async def begin(self) -> None:
        await self.execute("BEGIN")

    async def commit(self) -> None:
        await self.execute("COMMIT")

    async def rollback(self) -> None:
        await self.execute("ROLLBACK")

    def on(self, event: str, handler: EventHandler) -> None:
        """Call ``handler(session)`` whenever ``event`` is triggered"""
        self._handlers[event].append(handler)

    def off(self, event: str, handler: Optional[EventHandler] = None) -> None:
        """Detach one handler from ``event``, or all of them"""
        if handler is None:
            self._handlers.pop(event, None)
        elif handler in self._handlers.get(event, []):
            self._handlers[event].remove(handler)

    async def trigger(self, event: str) -> None:
        for handler in list(self._handlers.get(event, [])):
            result = handler(self)
            if isawaitable(result):
                await result

    def get_transaction(self) -> Optional[NestedTransaction]:
        """The currently active transaction of this session, if any"""
        if self._transaction is not None and self._transaction.is_active:
            return self._transaction
        return None

    async def begin_transaction(
        self, isolation_level: Optional[IsolationValue] = None
    ) -> NestedTransaction:
        """Begin a transaction, nested inside the active one if there is one

        Args:
            isolation_level (IsolationValue, optional): Isolation level to
                apply when this begins the outermost transaction

        Returns:
            NestedTransaction: The transaction manager of this session
        """
        await self.open()
        if self._transaction is None:
            self._transaction = NestedTransaction(self)
        await self._transaction.begin(isolation_level)
        return self._transaction

    async def transaction(
        self,
        callback: Callable[[BaseSession], Union[T, Awaitable[T]]],
        isolation_level: Optional[IsolationValue] = None,
    ) -> T:
        """Run ``callback`` inside a transaction and return its result

        The transaction is committed when the callback returns and rolled
        back when it raises. If the callback already committed or rolled
        back the level it was given, nothing more is done for that level.

        Example:

        ```python
        async def transfer(session):
            await session.execute("UPDATE ...")

        await session.transaction(transfer, IsolationLevel.SERIALIZABLE)
        ```
        """
        transaction = await self.begin_transaction(isolation_level)
        level = transaction.level

        try:
            result = callback(self)
            if isawaitable(result):
                result = await result
            if transaction.is_active and transaction.level == level:
                await transaction.commit()
        except BaseException:
            await self._rollback_transaction_on_level(transaction, level)
            raise

        return result

    async def _rollback_transaction_on_level(
        self, transaction: NestedTransaction, level: int
    ) -> None:
        if not transaction.is_active or transaction.level != level:
            return
        try:
            await transaction.rollback()
        except StrataError as e:
            # The original error is re-raised by the caller
            logger.error("Rollback after failed transaction failed: %s", e)
