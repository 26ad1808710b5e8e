from contextlib import AbstractAsyncContextManager
from typing import Any, Dict, List, Optional, Protocol, runtime_checkable


@runtime_checkable
class Connection(Protocol):
    """asyncpg-style connection surface shared by every dialect adapter.

    Parameterized SQL uses ``$1..$N`` placeholders regardless of the driver.
    """

    async def execute(self, sql: str, *params: Any) -> str: ...

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]: ...

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]: ...

    async def fetchval(self, sql: str, *params: Any) -> Any: ...


@runtime_checkable
class Database(Protocol):
    """A database handle that lends connections for the duration of one operation."""

    dialect: str

    async def init(self) -> None: ...

    async def close(self) -> None: ...

    def get_connection(self) -> AbstractAsyncContextManager[Connection]: ...
