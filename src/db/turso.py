"""Turso/libSQL database client wrapper."""

import logging
from typing import Any

from libsql_client import Client, ResultSet, Statement, create_client

from src.config import settings

logger = logging.getLogger(__name__)

Row = dict[str, Any]
BatchStatement = str | tuple[str, list[Any]]


class TursoClient:
    """Wrapper for Turso/libSQL async client.

    Supports both cloud Turso (with auth token) and local SQLite files.
    Rows can be read positionally through execute() or as column-keyed
    dicts through fetch_all()/fetch_one().
    """

    def __init__(
        self,
        url: str | None = None,
        auth_token: str | None = None,
    ):
        """Initialize client with connection parameters.

        Args:
            url: Database URL. Defaults to settings or local file.
            auth_token: Auth token for Turso cloud. Defaults to settings.
        """
        self.url = url or settings.turso_database_url or "file:l10.db"
        self.auth_token = auth_token or settings.turso_auth_token
        self._client: Client | None = None

    async def connect(self) -> None:
        """Establish database connection."""
        if self._client is not None:
            return

        if self.auth_token and self.url.startswith("libsql://"):
            self._client = create_client(url=self.url, auth_token=self.auth_token)
        else:
            self._client = create_client(url=self.url)

        logger.info(f"Connected to database: {self.url}")

    @property
    def connected(self) -> bool:
        return self._client is not None

    def _require_client(self) -> Client:
        if not self._client:
            msg = "Not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    async def execute(
        self,
        sql: str,
        params: list[Any] | None = None,
    ) -> ResultSet:
        """Execute a single SQL statement.

        Args:
            sql: SQL query with ? placeholders
            params: Query parameters

        Returns:
            ResultSet with rows and metadata
        """
        return await self._require_client().execute(sql, params or [])

    async def fetch_all(self, sql: str, params: list[Any] | None = None) -> list[Row]:
        """Run a query and return each row as a column-keyed dict."""
        result = await self.execute(sql, params)
        columns = list(result.columns)
        return [
            {column: row[index] for index, column in enumerate(columns)}
            for row in result.rows
        ]

    async def fetch_one(self, sql: str, params: list[Any] | None = None) -> Row | None:
        """Run a query and return the first row, or None."""
        rows = await self.fetch_all(sql, params)
        return rows[0] if rows else None

    async def execute_batch(self, statements: list[BatchStatement]) -> list[ResultSet]:
        """Execute several statements as one transaction.

        libSQL wraps a batch in BEGIN/COMMIT, so a failing statement rolls
        back every statement before it.

        Args:
            statements: SQL strings or (sql, params) pairs

        Returns:
            One ResultSet per statement, in order
        """
        batch = [
            Statement(stmt) if isinstance(stmt, str) else Statement(stmt[0], stmt[1])
            for stmt in statements
        ]
        return await self._require_client().batch(batch)

    async def close(self) -> None:
        """Close the database connection."""
        if self._client:
            await self._client.close()
            self._client = None
            logger.info("Database connection closed")

    async def is_healthy(self) -> bool:
        """Check if database connection is healthy."""
        try:
            if not self._client:
                return False
            result = await self._client.execute("SELECT 1")
            return len(result.rows) == 1
        except Exception:
            return False
