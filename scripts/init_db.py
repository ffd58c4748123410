from __future__ import annotations

import importlib

from dotenv import load_dotenv

from course_attendance.config import get_settings_module
from course_attendance.database.bootstrap import ensure_indexes, list_collections
from course_attendance.database.connection import DatabaseConnection, as_mongo_config


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    conn = DatabaseConnection(as_mongo_config(dict(settings.MONGO_CONFIG)))
    try:
        ensure_indexes(conn)
        collections = list_collections(conn)
        print(f"OK: Indexes ready -> {conn.config.display} (collections={len(collections)})")
    finally:
        conn.close()


if __name__ == "__main__":
    main()
