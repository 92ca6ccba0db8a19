"""Backup local storage.

Note: Dumps every storage key into one JSON file under ./backups.
"""

from __future__ import annotations

import importlib
import json
from datetime import datetime
from pathlib import Path

from kinster_attendance.config import get_settings_module
from kinster_attendance.container import build_storage


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    storage = build_storage(settings.STORAGE_PATH)

    out_dir = Path(__file__).resolve().parents[1] / "backups"
    out_dir.mkdir(parents=True, exist_ok=True)

    ts = datetime.now().strftime("%Y%m%d_%H%M%S")
    out_file = out_dir / f"kinster_storage_{ts}.json"

    dump = {}
    for key in storage.keys():
        raw = storage.get_item(key)
        try:
            dump[key] = json.loads(raw)
        except (TypeError, ValueError):
            dump[key] = raw

    out_file.write_text(json.dumps(dump, indent=2, ensure_ascii=False), encoding="utf-8")
    print(f"OK: Backup created: {out_file}")


if __name__ == "__main__":
    main()
