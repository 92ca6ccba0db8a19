from __future__ import annotations

import importlib

from kinster_attendance.config import get_settings_module
from kinster_attendance.container import build_container


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    container = build_container(storage_path=settings.STORAGE_PATH, seed_default_users=True)

    users = container.database.get_all_users()
    print(f"OK: Storage ready -> {settings.STORAGE_PATH} (users={len(users)})")


if __name__ == "__main__":
    main()
