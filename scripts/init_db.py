from __future__ import annotations

import argparse
import importlib

from dotenv import load_dotenv

from qr_attendance.common.datetime_utils import now_utc
from qr_attendance.config import get_settings_module
from qr_attendance.database.bootstrap import apply_schema, ensure_demo_data, list_tables


def main() -> None:
    parser = argparse.ArgumentParser(description="Create the QR attendance schema.")
    parser.add_argument("--seed", action="store_true", help="also create demo users and a session")
    args = parser.parse_args()

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    tables = list_tables(db_config)
    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')} "
        f"(tables={len(tables)})"
    )

    if args.seed:
        session_id = ensure_demo_data(db_config, now=now_utc())
        print(f"OK: Demo session {session_id} open for two hours (faculty/faculty123, student/student123)")


if __name__ == "__main__":
    main()
