from __future__ import annotations

import json
from datetime import datetime, timedelta, timezone

import pytest

from kinster_attendance.core.constants import ATTENDANCE_STORAGE_KEY, USERS_STORAGE_KEY
from kinster_attendance.core.enums import Role
from kinster_attendance.core.exceptions import DuplicateEmailError
from kinster_attendance.database.local_database import LocalDatabase
from kinster_attendance.database.local_storage import InMemoryLocalStorage


def _t(hour: int, minute: int = 0, day: int = 1) -> datetime:
    return datetime(2024, 1, day, hour, minute, tzinfo=timezone.utc)


def test_seeds_admin_and_user_on_first_run(db):
    emails = {u.email: u for u in db.get_all_users()}

    assert set(emails) == {"admin@kinster.com", "user@kinster.com"}
    assert emails["admin@kinster.com"].role == Role.ADMIN
    assert emails["admin@kinster.com"].password == "admin123"
    assert emails["user@kinster.com"].role == Role.USER
    assert all(u.is_active for u in emails.values())


def test_seeding_is_skipped_when_any_admin_exists(storage, clock):
    first = LocalDatabase(storage, clock=clock)
    admin = first.get_user_by_email("admin@kinster.com")
    first.update_user(admin.id, email="boss@example.com")

    second = LocalDatabase(storage, clock=clock)

    assert second.get_user_by_email("admin@kinster.com") is None
    assert len(second.get_all_users()) == 2


def test_seeding_can_be_disabled(storage):
    db = LocalDatabase(storage, seed_default_users=False)
    assert db.get_all_users() == []
    assert json.loads(storage.get_item(USERS_STORAGE_KEY)) == []
    assert json.loads(storage.get_item(ATTENDANCE_STORAGE_KEY)) == []


def test_create_user_then_lookup_by_email(db):
    created = db.create_user("ann@example.com", "secret1", "Ann")
    found = db.get_user_by_email("ann@example.com")

    assert found == created
    assert found.id
    assert found.name == "Ann"
    assert found.password == "secret1"
    assert found.role == Role.USER
    assert db.get_user_by_id(created.id) == created


def test_duplicate_email_is_rejected_and_store_unchanged(db, storage):
    db.create_user("ann@example.com", "secret1", "Ann")
    before = storage.get_item(USERS_STORAGE_KEY)

    with pytest.raises(DuplicateEmailError):
        db.create_user("ann@example.com", "other12", "Other Ann")

    assert storage.get_item(USERS_STORAGE_KEY) == before


def test_email_match_is_case_sensitive(db):
    db.create_user("ann@example.com", "secret1", "Ann")
    assert db.get_user_by_email("ANN@example.com") is None
    db.create_user("ANN@example.com", "secret1", "Ann Upper")


def test_all_users_newest_first(db):
    a = db.create_user("a@example.com", "secret1", "A")
    b = db.create_user("b@example.com", "secret1", "B")

    users = db.get_all_users()

    assert users[0].id == b.id
    assert users[1].id == a.id


def test_update_user_merges_only_given_fields(db):
    user = db.create_user("ann@example.com", "secret1", "Ann")

    assert db.update_user(user.id, name="Ann B", role=Role.ADMIN) is True

    updated = db.get_user_by_id(user.id)
    assert updated.name == "Ann B"
    assert updated.role == Role.ADMIN
    assert updated.email == "ann@example.com"
    assert updated.password == "secret1"
    assert updated.created_at == user.created_at


def test_update_unknown_user_returns_false(db):
    assert db.update_user("missing", name="X") is False


def test_update_rejects_unknown_fields(db):
    user = db.create_user("ann@example.com", "secret1", "Ann")
    with pytest.raises(ValueError):
        db.update_user(user.id, id="hijack")


def test_update_to_taken_email_is_rejected(db):
    user = db.create_user("ann@example.com", "secret1", "Ann")
    with pytest.raises(DuplicateEmailError):
        db.update_user(user.id, email="admin@kinster.com")


def test_delete_user_cascades_attendance(db):
    ann = db.create_user("ann@example.com", "secret1", "Ann")
    bob = db.create_user("bob@example.com", "secret1", "Bob")
    db.create_attendance_record(ann.id, _t(9), 1.0, 2.0)
    db.create_attendance_record(ann.id, _t(9, day=2), 1.0, 2.0)
    kept = db.create_attendance_record(bob.id, _t(9), 3.0, 4.0)

    assert db.delete_user(ann.id) is True

    assert db.get_user_by_id(ann.id) is None
    assert db.get_attendance_records(ann.id) == []
    assert [r.id for r in db.get_attendance_records()] == [kept.id]


def test_delete_unknown_user_returns_false(db):
    assert db.delete_user("missing") is False


def test_attendance_lifecycle(db):
    user = db.create_user("ann@example.com", "secret1", "Ann")
    record = db.create_attendance_record(user.id, _t(9), 10.0, 20.0)

    assert record.is_open
    assert record.total_hours is None
    assert db.get_active_attendance_record(user.id) == record

    assert db.update_attendance_logout(record.id, _t(17, 30), 10.1, 20.1, 8.5) is True

    closed = db.get_attendance_records(user.id)[0]
    assert closed.logout_time == _t(17, 30)
    assert closed.logout_location.lat == 10.1
    assert closed.total_hours == 8.5
    assert db.get_active_attendance_record(user.id) is None


def test_logout_update_unknown_record_returns_false(db):
    assert db.update_attendance_logout("missing", _t(17), 0.0, 0.0, 1.0) is False


def test_records_ordered_by_login_time_desc_and_filtered(db):
    ann = db.create_user("ann@example.com", "secret1", "Ann")
    bob = db.create_user("bob@example.com", "secret1", "Bob")
    early = db.create_attendance_record(ann.id, _t(8), 0.0, 0.0)
    late = db.create_attendance_record(ann.id, _t(12), 0.0, 0.0)
    db.create_attendance_record(bob.id, _t(10), 0.0, 0.0)

    assert [r.id for r in db.get_attendance_records(ann.id)] == [late.id, early.id]
    assert [r.login_time for r in db.get_attendance_records()] == [_t(12), _t(10), _t(8)]


def test_active_record_is_most_recent_open_one(db):
    ann = db.create_user("ann@example.com", "secret1", "Ann")
    db.create_attendance_record(ann.id, _t(8), 0.0, 0.0)
    newest = db.create_attendance_record(ann.id, _t(11), 0.0, 0.0)

    assert db.get_active_attendance_record(ann.id).id == newest.id


def test_details_join_uses_placeholders_for_missing_user(db, storage):
    ann = db.create_user("ann@example.com", "secret1", "Ann")
    db.create_attendance_record(ann.id, _t(9), 0.0, 0.0)
    db.create_attendance_record("ghost", _t(10), 0.0, 0.0)

    rows = db.get_attendance_with_user_details()

    assert [(r.user_name, r.user_email) for r in rows] == [
        ("Unknown User", "unknown@email.com"),
        ("Ann", "ann@example.com"),
    ]


def test_records_survive_reload(storage, clock):
    db = LocalDatabase(storage, clock=clock)
    user = db.create_user("ann@example.com", "secret1", "Ann")
    written = []
    for i in range(5):
        rec = db.create_attendance_record(user.id, _t(8) + timedelta(hours=i, microseconds=777), 1.5 + i, -2.5)
        written.append(rec)
    db.update_attendance_logout(written[0].id, _t(20), 1.0, 1.0, 11.5)
    written[0] = db.get_attendance_records(user.id)[-1]

    reloaded = LocalDatabase(storage, clock=clock)

    assert sorted(reloaded.get_attendance_records(), key=lambda r: r.id) == sorted(written, key=lambda r: r.id)


def test_reads_return_copies(db):
    user = db.create_user("ann@example.com", "secret1", "Ann")
    first = db.get_user_by_id(user.id)
    db.update_user(user.id, name="Changed")

    assert first.name == "Ann"


def test_corrupt_storage_falls_back_to_empty(clock):
    storage = InMemoryLocalStorage({USERS_STORAGE_KEY: "{not json", ATTENDANCE_STORAGE_KEY: '{"a": 1}'})
    db = LocalDatabase(storage, seed_default_users=False, clock=clock)

    assert db.get_all_users() == []
    assert db.get_attendance_records() == []


def test_malformed_entries_are_skipped(clock):
    good = {
        "id": "u1",
        "email": "ann@example.com",
        "password": "secret1",
        "name": "Ann",
        "role": "user",
        "created_at": "2024-01-01T00:00:00.000Z",
        "is_active": True,
    }
    storage = InMemoryLocalStorage(
        {
            USERS_STORAGE_KEY: json.dumps([good, {"id": "broken"}, {**good, "id": "u2", "role": "root"}]),
            ATTENDANCE_STORAGE_KEY: "[]",
        }
    )
    db = LocalDatabase(storage, seed_default_users=False, clock=clock)

    assert [u.id for u in db.get_all_users()] == ["u1"]


def test_corrupt_storage_is_reseeded(clock):
    storage = InMemoryLocalStorage({USERS_STORAGE_KEY: "garbage"})
    db = LocalDatabase(storage, clock=clock)

    assert db.get_user_by_email("admin@kinster.com") is not None


def test_store_does_not_block_second_open_record(db):
    ann = db.create_user("ann@example.com", "secret1", "Ann")
    db.create_attendance_record(ann.id, _t(8), 0.0, 0.0)
    db.create_attendance_record(ann.id, _t(9), 0.0, 0.0)

    assert len([r for r in db.get_attendance_records(ann.id) if r.is_open]) == 2
