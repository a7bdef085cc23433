from __future__ import annotations

import re
from pathlib import Path
from typing import Iterator

import mysql.connector

from ..common.logger import get_logger
from .connection import DBConfig

logger = get_logger("database.bootstrap")

SCHEMA_PATH = Path(__file__).resolve().parent / "schema.sql"

# Quoted literals are matched first so ';' and '--' inside them are kept verbatim.
_SQL_TOKEN = re.compile(
    r"""
      (?P<quoted>'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|`[^`]*`)
    | (?P<comment>--[^\n]*)
    | (?P<end>;)
    | (?P<other>[^'"`;-]+|[-'"`])
    """,
    re.VERBOSE | re.DOTALL,
)

_DB_SELECTION = re.compile(r"^(CREATE\s+DATABASE|USE)\b", re.IGNORECASE)
_SAFE_DB_NAME = re.compile(r"[A-Za-z0-9_]+")


def iter_sql_statements(sql: str) -> Iterator[str]:
    """Split a schema script into statements, dropping ``--`` comments.

    ``CREATE DATABASE`` / ``USE`` lines are skipped: the target database
    always comes from configuration.
    """

    parts: list[str] = []
    for match in _SQL_TOKEN.finditer(sql):
        if match.lastgroup == "comment":
            continue
        if match.lastgroup != "end":
            parts.append(match.group())
            continue
        stmt = "".join(parts).strip()
        parts = []
        if stmt and not _DB_SELECTION.match(stmt):
            yield stmt

    tail = "".join(parts).strip()
    if tail and not _DB_SELECTION.match(tail):
        yield tail


def _connect(config: DBConfig, *, with_database: bool = True):
    params = {
        "host": config.host,
        "port": config.port,
        "user": config.user,
        "password": config.password,
        "connection_timeout": config.connection_timeout,
        "use_pure": True,
    }
    if with_database:
        params["database"] = config.database
    return mysql.connector.connect(**params)


def ensure_database_exists(config: DBConfig) -> None:
    if not _SAFE_DB_NAME.fullmatch(config.database):
        raise ValueError(f"Refusing to create database with unsafe name {config.database!r}")

    conn = _connect(config, with_database=False)
    try:
        cur = conn.cursor()
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{config.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )
        conn.commit()
    finally:
        conn.close()


def apply_schema(config: DBConfig, *, schema_path: str | Path = SCHEMA_PATH) -> None:
    """Create the database if needed and run every statement of ``schema_path``.

    The script only uses ``CREATE TABLE IF NOT EXISTS`` so re-running it is safe.
    """

    ensure_database_exists(config)
    statements = list(iter_sql_statements(Path(schema_path).read_text(encoding="utf-8")))

    conn = _connect(config)
    try:
        cur = conn.cursor()
        for stmt in statements:
            cur.execute(stmt)
        conn.commit()
    finally:
        conn.close()
    logger.info(
        "Applied %s statements to %s@%s:%s/%s",
        len(statements),
        config.user,
        config.host,
        config.port,
        config.database,
    )


def list_tables(config: DBConfig) -> list[str]:
    conn = _connect(config)
    try:
        cur = conn.cursor()
        cur.execute("SHOW TABLES")
        return sorted(row[0] for row in cur.fetchall())
    finally:
        conn.close()
