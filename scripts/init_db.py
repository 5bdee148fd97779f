from __future__ import annotations

import importlib

from dotenv import load_dotenv

from volunteer_hours.config import get_settings_module
from volunteer_hours.database.bootstrap import apply_schema, list_tables


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    db_config = dict(settings.DB_CONFIG)

    apply_schema(db_config)
    tables = list_tables(db_config)

    print(
        "OK: Applied schema.sql -> "
        f"{db_config.get('user')}@{db_config.get('host')}:{db_config.get('port', 3306)}/{db_config.get('database')}"
        f" ({len(tables)} tables)"
    )


if __name__ == "__main__":
    main()
