from typing import Any, Callable, Dict, List, Optional, Union

Rows = Union[List[Dict[str, Any]], Callable[[tuple], List[Dict[str, Any]]]]


class FakeConnection:
    """Records executed SQL and answers fetches from canned responses.

    ``responses`` maps a substring of the SQL to the rows returned for it (or to
    a callable receiving the bound params); the first matching key wins.
    """

    def __init__(self, responses: Optional[Dict[str, Rows]] = None, fail_on: Optional[str] = None):
        self.responses = responses or {}
        self.fail_on = fail_on
        self.executed: List[tuple] = []
        self.fetched: List[tuple] = []

    async def execute(self, sql: str, *params: Any) -> str:
        self.executed.append((sql, params))
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError(f"boom: {self.fail_on}")
        return "OK"

    async def fetch(self, sql: str, *params: Any) -> List[Dict[str, Any]]:
        self.fetched.append((sql, params))
        if self.fail_on and self.fail_on in sql:
            raise RuntimeError(f"boom: {self.fail_on}")
        for key, rows in self.responses.items():
            if key in sql:
                produced = rows(params) if callable(rows) else rows
                return [dict(row) for row in produced]
        return []

    async def fetchrow(self, sql: str, *params: Any) -> Optional[Dict[str, Any]]:
        rows = await self.fetch(sql, *params)
        return rows[0] if rows else None

    async def fetchval(self, sql: str, *params: Any) -> Any:
        row = await self.fetchrow(sql, *params)
        return next(iter(row.values())) if row else None

    def statements(self) -> List[str]:
        return [sql for sql, _ in self.executed]


class _Borrow:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn

    async def __aenter__(self) -> FakeConnection:
        return self._conn

    async def __aexit__(self, *exc_info) -> bool:
        return False


class FakeDatabase:
    """Database double lending a single FakeConnection."""

    def __init__(self, conn: Optional[FakeConnection] = None, dialect: str = "postgres"):
        self.conn = conn or FakeConnection()
        self.dialect = dialect
        self.default_schema = "public" if dialect == "postgres" else None
        self.borrows = 0
        self.closed = False

    async def init(self) -> None:
        return None

    async def close(self) -> None:
        self.closed = True

    def get_connection(self) -> _Borrow:
        self.borrows += 1
        return _Borrow(self.conn)
