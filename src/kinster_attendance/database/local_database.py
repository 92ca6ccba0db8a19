from __future__ import annotations

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Sequence

from ..attendance.model import AttendanceRecord, AttendanceWithUser, Coordinates
from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_utc, parse_iso, to_iso
from ..core.constants import (
    ATTENDANCE_STORAGE_KEY,
    DEFAULT_ACCOUNTS,
    UNKNOWN_USER_EMAIL,
    UNKNOWN_USER_NAME,
    USERS_STORAGE_KEY,
)
from ..core.enums import Role
from ..core.exceptions import DuplicateEmailError
from ..users.model import User
from ..users.repository import UserRepository
from .local_storage import LocalStorage

logger = logging.getLogger(__name__)

UPDATABLE_USER_FIELDS = frozenset({"email", "password", "name", "role", "is_active"})


def _user_from_dict(d: Dict[str, Any]) -> User:
    return User(
        id=str(d["id"]),
        email=str(d["email"]),
        password=str(d["password"]),
        name=str(d["name"]),
        role=Role(d["role"]),
        created_at=parse_iso(d["created_at"]),
        is_active=bool(d.get("is_active", True)),
    )


def _user_to_dict(user: User) -> Dict[str, Any]:
    return {
        "id": user.id,
        "email": user.email,
        "password": user.password,
        "name": user.name,
        "role": user.role.value,
        "created_at": to_iso(user.created_at),
        "is_active": user.is_active,
    }


def _record_from_dict(d: Dict[str, Any]) -> AttendanceRecord:
    logout_time = d.get("logout_time")
    logout_location = None
    if d.get("logout_location_lat") is not None and d.get("logout_location_lng") is not None:
        logout_location = Coordinates(lat=float(d["logout_location_lat"]), lng=float(d["logout_location_lng"]))
    total_hours = d.get("total_hours")

    return AttendanceRecord(
        id=str(d["id"]),
        user_id=str(d["user_id"]),
        login_time=parse_iso(d["login_time"]),
        login_location=Coordinates(lat=float(d["login_location_lat"]), lng=float(d["login_location_lng"])),
        created_at=parse_iso(d["created_at"]),
        logout_time=parse_iso(logout_time) if logout_time else None,
        logout_location=logout_location,
        total_hours=float(total_hours) if total_hours is not None else None,
    )


def _record_to_dict(record: AttendanceRecord) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": record.id,
        "user_id": record.user_id,
        "login_time": to_iso(record.login_time),
        "login_location_lat": record.login_location.lat,
        "login_location_lng": record.login_location.lng,
        "created_at": to_iso(record.created_at),
    }
    # Optional fields are omitted while the session is open.
    if record.logout_time is not None:
        out["logout_time"] = to_iso(record.logout_time)
    if record.logout_location is not None:
        out["logout_location_lat"] = record.logout_location.lat
        out["logout_location_lng"] = record.logout_location.lng
    if record.total_hours is not None:
        out["total_hours"] = record.total_hours
    return out


def _stored(value: datetime) -> datetime:
    """Round to the millisecond precision kept in storage."""
    return parse_iso(to_iso(value))


class LocalDatabase(UserRepository, AttendanceRepository):
    """Users and attendance records persisted as two JSON arrays in local storage.

    Every call reads the collection it needs from storage and every mutation
    writes the whole collection back, so callers always get fresh copies.
    Not safe for concurrent writers.
    """

    def __init__(
        self,
        storage: LocalStorage,
        *,
        seed_default_users: bool = True,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._storage = storage
        self._clock = clock
        self._initialize_data(seed_default_users)

    def _initialize_data(self, seed_default_users: bool) -> None:
        if self._storage.get_item(USERS_STORAGE_KEY) is None:
            self._save_users([])
        if self._storage.get_item(ATTENDANCE_STORAGE_KEY) is None:
            self._save_records([])

        if not seed_default_users:
            return
        if any(u.role == Role.ADMIN for u in self._load_users()):
            return

        users = self._load_users()
        for email, password, name, role in DEFAULT_ACCOUNTS:
            if any(u.email == email for u in users):
                continue
            users.append(self._new_user(email, password, name, Role(role)))
        self._save_users(users)
        logger.info("Seeded default accounts (%d users total)", len(users))

    # ---- raw collections ----

    def _load(self, key: str, parse: Callable[[Dict[str, Any]], Any]) -> list:
        raw = self._storage.get_item(key)
        if not raw:
            return []

        try:
            payload = json.loads(raw)
        except ValueError:
            logger.warning("Stored data under %r is not valid JSON; treating as empty", key)
            return []
        if not isinstance(payload, list):
            logger.warning("Stored data under %r is not a list; treating as empty", key)
            return []

        items = []
        for entry in payload:
            try:
                items.append(parse(entry))
            except (KeyError, TypeError, ValueError):
                logger.warning("Skipping malformed entry under %r: %r", key, entry)
        return items

    def _load_users(self) -> List[User]:
        return self._load(USERS_STORAGE_KEY, _user_from_dict)

    def _save_users(self, users: Sequence[User]) -> None:
        self._storage.set_item(USERS_STORAGE_KEY, json.dumps([_user_to_dict(u) for u in users]))

    def _load_records(self) -> List[AttendanceRecord]:
        return self._load(ATTENDANCE_STORAGE_KEY, _record_from_dict)

    def _save_records(self, records: Sequence[AttendanceRecord]) -> None:
        self._storage.set_item(ATTENDANCE_STORAGE_KEY, json.dumps([_record_to_dict(r) for r in records]))

    def _now(self) -> datetime:
        return _stored(self._clock())

    def _new_user(self, email: str, password: str, name: str, role: Role) -> User:
        return User(
            id=str(uuid.uuid4()),
            email=email,
            password=password,
            name=name,
            role=role,
            created_at=self._now(),
            is_active=True,
        )

    # ---- users ----

    def create_user(self, email: str, password: str, name: str, role: Role = Role.USER) -> User:
        users = self._load_users()
        if any(u.email == email for u in users):
            raise DuplicateEmailError(email)

        user = self._new_user(email, password, name, Role(role))
        users.append(user)
        self._save_users(users)
        return user

    def get_user_by_email(self, email: str) -> Optional[User]:
        return next((u for u in self._load_users() if u.email == email), None)

    def get_user_by_id(self, user_id: str) -> Optional[User]:
        return next((u for u in self._load_users() if u.id == user_id), None)

    def get_all_users(self) -> List[User]:
        return sorted(self._load_users(), key=lambda u: u.created_at, reverse=True)

    def update_user(self, user_id: str, **fields: Any) -> bool:
        unknown = set(fields) - UPDATABLE_USER_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user fields: {', '.join(sorted(unknown))}")

        users = self._load_users()
        index = next((i for i, u in enumerate(users) if u.id == user_id), None)
        if index is None:
            return False

        email = fields.get("email")
        if email is not None and any(u.email == email and u.id != user_id for u in users):
            raise DuplicateEmailError(email)

        current = _user_to_dict(users[index])
        current.update(fields)
        current["role"] = Role(current["role"]).value
        users[index] = _user_from_dict(current)
        self._save_users(users)
        return True

    def delete_user(self, user_id: str) -> bool:
        users = self._load_users()
        remaining = [u for u in users if u.id != user_id]
        if len(remaining) == len(users):
            return False

        self._save_users(remaining)
        self._save_records([r for r in self._load_records() if r.user_id != user_id])
        return True

    # ---- attendance ----

    def create_attendance_record(
        self,
        user_id: str,
        login_time: datetime,
        lat: float,
        lng: float,
    ) -> AttendanceRecord:
        records = self._load_records()
        record = AttendanceRecord(
            id=str(uuid.uuid4()),
            user_id=user_id,
            login_time=_stored(login_time),
            login_location=Coordinates(lat=float(lat), lng=float(lng)),
            created_at=self._now(),
        )
        records.append(record)
        self._save_records(records)
        return record

    def update_attendance_logout(
        self,
        record_id: str,
        logout_time: datetime,
        lat: float,
        lng: float,
        total_hours: float,
    ) -> bool:
        records = self._load_records()
        index = next((i for i, r in enumerate(records) if r.id == record_id), None)
        if index is None:
            return False

        current = records[index]
        records[index] = AttendanceRecord(
            id=current.id,
            user_id=current.user_id,
            login_time=current.login_time,
            login_location=current.login_location,
            created_at=current.created_at,
            logout_time=_stored(logout_time),
            logout_location=Coordinates(lat=float(lat), lng=float(lng)),
            total_hours=float(total_hours),
        )
        self._save_records(records)
        return True

    def get_attendance_records(self, user_id: Optional[str] = None) -> List[AttendanceRecord]:
        records = self._load_records()
        if user_id:
            records = [r for r in records if r.user_id == user_id]
        return sorted(records, key=lambda r: r.login_time, reverse=True)

    def get_active_attendance_record(self, user_id: str) -> Optional[AttendanceRecord]:
        open_records = [r for r in self._load_records() if r.user_id == user_id and r.is_open]
        if not open_records:
            return None
        return max(open_records, key=lambda r: r.login_time)

    def get_attendance_with_user_details(self) -> List[AttendanceWithUser]:
        users = {u.id: u for u in self._load_users()}
        out = []
        for record in self.get_attendance_records():
            user = users.get(record.user_id)
            out.append(
                AttendanceWithUser(
                    record=record,
                    user_name=user.name if user else UNKNOWN_USER_NAME,
                    user_email=user.email if user else UNKNOWN_USER_EMAIL,
                )
            )
        return out
