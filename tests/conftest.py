"""Shared test fixtures."""

from collections.abc import Iterator
from dataclasses import dataclass, field

import pytest
from fastapi.testclient import TestClient

from user_directory.adapters.sqlite_database import SqliteDatabase
from user_directory.api.app import create_app
from user_directory.config import Settings
from user_directory.containers import AppContainer, build_container
from user_directory.domain.models import UserCreate
from user_directory.domain.results import StorageError
from user_directory.services.users import Database, ExecuteResult, UserService


@dataclass
class FailingDatabase(Database):
    """Database stub whose every call fails like a broken connection."""

    calls: list[str] = field(default_factory=list)

    def execute(self, statement, params=None) -> ExecuteResult:  # type: ignore[no-untyped-def]
        self.calls.append(statement)
        raise StorageError("database is locked")

    def query_one(self, statement, params=None):  # type: ignore[no-untyped-def]
        self.calls.append(statement)
        raise StorageError("database is locked")

    def query_all(self, statement, params=None):  # type: ignore[no-untyped-def]
        self.calls.append(statement)
        raise StorageError("database is locked")


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        database_path=str(tmp_path / "data" / "users.db"),
        database_timeout_seconds=1.0,
        log_level="DEBUG",
    )


@pytest.fixture
def database(settings: Settings) -> Iterator[SqliteDatabase]:
    db = SqliteDatabase.create(
        settings.database_path, timeout_seconds=settings.database_timeout_seconds
    )
    db.create_schema()
    yield db
    db.close()


@pytest.fixture
def user_service(database: SqliteDatabase) -> UserService:
    return UserService(database)


@pytest.fixture
def make_user(user_service: UserService):  # type: ignore[no-untyped-def]
    def _make_user(name: str = "Ann", email: str = "ann@example.com", age: int = 29):
        result = user_service.create_user(UserCreate(name=name, email=email, age=age))
        return result.value

    return _make_user


@pytest.fixture
def container(settings: Settings) -> AppContainer:
    return build_container(settings)


@pytest.fixture
def client(container: AppContainer) -> Iterator[TestClient]:
    with TestClient(create_app(container)) as test_client:
        yield test_client
