from __future__ import annotations

import importlib

from dotenv import load_dotenv

from timekeeping.database.bootstrap import apply_schema, list_tables
from timekeeping.database.connection import DBConfig
from timekeeping.settings import get_settings_module


def main() -> None:
    load_dotenv(override=False)
    settings = importlib.import_module(get_settings_module())
    config = DBConfig.from_mapping(dict(settings.DB_CONFIG), lock_timeout=getattr(settings, "DB_LOCK_TIMEOUT", None))

    apply_schema(config)
    tables = list_tables(config)
    print(
        "OK: Applied schema.sql -> "
        f"{config.user}@{config.host}:{config.port}/{config.database} "
        f"(tables={len(tables)})"
    )


if __name__ == "__main__":
    main()
