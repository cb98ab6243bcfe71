from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.student_attendance.student_attendance.database.bootstrap import ensure_admin_user


def main() -> None:
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    parser = argparse.ArgumentParser(description="Create or reset the administrator account.")
    parser.add_argument("--email", default=getattr(settings, "ADMIN_EMAIL", "admin@test.com"))
    parser.add_argument("--password", default=getattr(settings, "ADMIN_PASSWORD", "admin123"))
    parser.add_argument("--name", default="Admin User")
    args = parser.parse_args()

    ensure_admin_user(db_config, email=args.email, password=args.password, full_name=args.name)

    print(
        f"OK: Admin {args.email} ready -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
    )


if __name__ == "__main__":
    main()
