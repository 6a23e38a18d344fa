"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from user_directory.adapters.sqlite_database import SqliteDatabase
from user_directory.config import Settings
from user_directory.services.users import UserService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    database: SqliteDatabase
    user_service: UserService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container and ensure the schema exists."""
    resolved_settings = settings or Settings()
    database = SqliteDatabase.create(
        resolved_settings.database_path,
        timeout_seconds=resolved_settings.database_timeout_seconds,
    )
    database.create_schema()
    user_service = UserService(database)

    async def close_resources() -> None:
        database.close()

    return AppContainer(
        settings=resolved_settings,
        database=database,
        user_service=user_service,
        close_resources=close_resources,
    )
