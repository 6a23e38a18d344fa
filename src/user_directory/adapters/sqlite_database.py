"""SQLite storage accessor built on SQLAlchemy Core."""

from collections.abc import Mapping
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from user_directory.domain.results import ConstraintViolation, StorageError
from user_directory.services.users import TIMESTAMP_NOW, Database, ExecuteResult

USERS_TABLE_DDL = f"""
CREATE TABLE IF NOT EXISTS users (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    name TEXT NOT NULL,
    email TEXT NOT NULL UNIQUE,
    age INTEGER NOT NULL,
    createdAt TEXT NOT NULL DEFAULT ({TIMESTAMP_NOW}),
    updatedAt TEXT NOT NULL DEFAULT ({TIMESTAMP_NOW})
)
"""


@dataclass
class SqliteDatabase(Database):
    """Parameterized statement runner over a single SQLite file."""

    engine: Engine
    path: Path

    @classmethod
    def create(cls, path: str | Path, timeout_seconds: float) -> "SqliteDatabase":
        """Create an accessor whose connections wait at most ``timeout_seconds``."""
        resolved = Path(path)
        engine = create_engine(
            f"sqlite:///{resolved}",
            connect_args={"timeout": timeout_seconds, "check_same_thread": False},
        )
        return cls(engine=engine, path=resolved)

    def create_schema(self) -> None:
        """Create the users table if it does not exist yet."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.execute(USERS_TABLE_DDL)

    def execute(
        self, statement: str, params: Mapping[str, object] | None = None
    ) -> ExecuteResult:
        """Run a write statement in its own transaction."""
        try:
            with self.engine.begin() as connection:
                result = connection.execute(text(statement), dict(params or {}))
                return ExecuteResult(
                    last_insert_id=result.lastrowid,
                    rows_affected=result.rowcount,
                )
        except IntegrityError as exc:
            raise ConstraintViolation(str(exc.orig)) from exc
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc

    def query_one(
        self, statement: str, params: Mapping[str, object] | None = None
    ) -> dict[str, object] | None:
        """Return the first row of a query, if any."""
        try:
            with self.engine.connect() as connection:
                row = (
                    connection.execute(text(statement), dict(params or {}))
                    .mappings()
                    .first()
                )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        return dict(row) if row is not None else None

    def query_all(
        self, statement: str, params: Mapping[str, object] | None = None
    ) -> list[dict[str, object]]:
        """Return every row of a query."""
        try:
            with self.engine.connect() as connection:
                rows = (
                    connection.execute(text(statement), dict(params or {}))
                    .mappings()
                    .all()
                )
        except SQLAlchemyError as exc:
            raise StorageError(str(exc)) from exc
        return [dict(row) for row in rows]

    def close(self) -> None:
        """Release pooled connections."""
        self.engine.dispose()
