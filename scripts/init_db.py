"""Create the database (if missing) and apply database/schema.sql.

Usage: python scripts/init_db.py [--schema PATH]
"""

from __future__ import annotations

import argparse
import importlib
import sys
from pathlib import Path

from dotenv import load_dotenv

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from config import get_settings_module

from src.attendance_engine.attendance_engine.database.bootstrap import apply_schema, list_tables


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Apply the attendance engine schema.")
    parser.add_argument("--schema", type=Path, default=REPO_ROOT / "database" / "schema.sql")
    args = parser.parse_args(argv)

    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config, schema_path=args.schema)
    tables = list_tables(db_config)
    print(f"OK: {db_config.get('database')} has {len(tables)} table(s): {', '.join(sorted(tables))}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
