from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from .attendance.service import AttendanceService
from .core.constants import DEFAULT_GEOLOCATION_TIMEOUT_SECONDS
from .database.connection import DBConfig, DatabaseConnection
from .database.local_database import LocalDatabase
from .database.local_storage import InMemoryLocalStorage, LocalStorage, SQLiteLocalStorage
from .geolocation.model import LocationOptions
from .reports.service import AttendanceReportService
from .users.service import AuthService, UserService

MEMORY_STORAGE = ":memory:"


@dataclass(frozen=True)
class Container:
    storage: LocalStorage
    database: LocalDatabase
    location_options: LocationOptions

    auth_service: AuthService
    user_service: UserService
    attendance_service: AttendanceService
    report_service: AttendanceReportService


def build_storage(storage_path: str) -> LocalStorage:
    if storage_path == MEMORY_STORAGE:
        return InMemoryLocalStorage()
    return SQLiteLocalStorage(DatabaseConnection(DBConfig(path=storage_path)))


def build_container(
    *,
    storage_path: str = MEMORY_STORAGE,
    storage: Optional[LocalStorage] = None,
    seed_default_users: bool = True,
    geolocation_timeout: float = DEFAULT_GEOLOCATION_TIMEOUT_SECONDS,
) -> Container:
    storage = storage if storage is not None else build_storage(storage_path)
    database = LocalDatabase(storage, seed_default_users=seed_default_users)

    return Container(
        storage=storage,
        database=database,
        location_options=LocationOptions(timeout=float(geolocation_timeout)),
        auth_service=AuthService(database),
        user_service=UserService(database),
        attendance_service=AttendanceService(database, database),
        report_service=AttendanceReportService(database),
    )
