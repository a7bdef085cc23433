from __future__ import annotations

import pytest

from timekeeping.database.bootstrap import SCHEMA_PATH, ensure_database_exists, iter_sql_statements
from timekeeping.database.connection import DBConfig


def test_splitter_keeps_semicolons_and_dashes_inside_literals():
    sql = """
    -- leading comment
    CREATE DATABASE IF NOT EXISTS other_db;
    USE other_db;
    INSERT INTO t VALUES ('a;b', "c -- d", 'it\\'s'); -- trailing
    SELECT 1 - 1
    """

    assert list(iter_sql_statements(sql)) == [
        "INSERT INTO t VALUES ('a;b', \"c -- d\", 'it\\'s')",
        "SELECT 1 - 1",
    ]


def test_shipped_schema_creates_every_table():
    statements = list(iter_sql_statements(SCHEMA_PATH.read_text(encoding="utf-8")))

    created = [s.split()[5] for s in statements if s.upper().startswith("CREATE TABLE IF NOT EXISTS")]
    assert created == ["employees", "attendance", "time_logs", "face_embeddings"]


def test_unsafe_database_name_is_refused():
    config = DBConfig(host="localhost", port=3306, user="root", password="", database="x`; DROP")

    with pytest.raises(ValueError):
        ensure_database_exists(config)
