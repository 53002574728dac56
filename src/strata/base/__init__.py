from .dialect import BaseDialect
from .session import BaseSession

__all__ = ("BaseDialect", "BaseSession")
