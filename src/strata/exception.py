class StrataError(Exception):
    """Base exception for all strata errors"""

    pass


class ConfigurationError(StrataError):
    """Raised when a session or transaction is wired up incorrectly"""

    pass


class UnsupportedOperationError(StrataError):
    """Raised when the database engine cannot perform the operation"""

    pass


class TransactionStateError(StrataError):
    """Raised when an operation requires an active transaction"""

    pass


class ExecutionError(StrataError):
    """Raised when a statement fails on the database"""

    pass
