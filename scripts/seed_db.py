from __future__ import annotations

import importlib

from dotenv import load_dotenv

from course_attendance.config import get_settings_module
from course_attendance.container import build_container
from course_attendance.database.bootstrap import ensure_indexes
from course_attendance.database.seed import ensure_demo_data


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    container = build_container(
        backend="mongo",
        db_config=dict(settings.MONGO_CONFIG),
        jwt_secret=settings.JWT_SECRET,
        email_domain=settings.STUDENT_EMAIL_DOMAIN,
    )
    try:
        ensure_indexes(container.conn)
        ensure_demo_data(container)
        print(f"OK: Seeded database -> {container.conn.config.display}")
    finally:
        container.close()


if __name__ == "__main__":
    main()
