from __future__ import annotations

from dataclasses import dataclass

import mysql.connector
from mysql.connector.constants import ClientFlag

from ..core.constants import DEFAULT_CONNECT_TIMEOUT_SECONDS, DEFAULT_LOCK_TIMEOUT_SECONDS


@dataclass(frozen=True)
class DBConfig:
    host: str
    port: int
    user: str
    password: str
    database: str
    connection_timeout: int = DEFAULT_CONNECT_TIMEOUT_SECONDS
    lock_timeout: int = DEFAULT_LOCK_TIMEOUT_SECONDS

    @classmethod
    def from_mapping(cls, db_config: dict, *, lock_timeout: int | None = None) -> "DBConfig":
        return cls(
            host=str(db_config.get("host", "localhost")),
            port=int(db_config.get("port", 3306)),
            user=str(db_config.get("user", "root")),
            password=str(db_config.get("password", "")),
            database=str(db_config.get("database", "timekeeping_db")),
            connection_timeout=int(db_config.get("connection_timeout", DEFAULT_CONNECT_TIMEOUT_SECONDS)),
            lock_timeout=int(lock_timeout if lock_timeout is not None else DEFAULT_LOCK_TIMEOUT_SECONDS),
        )


class DatabaseConnection:
    """DB connection factory.

    Created once by the app factory and handed to every repository. Each
    operation opens a short-lived connection and releases it when done.
    """

    def __init__(self, config: DBConfig):
        self._config = config

    @property
    def config(self) -> DBConfig:
        return self._config

    def connect(self):
        conn = mysql.connector.connect(
            host=self._config.host,
            port=int(self._config.port),
            user=self._config.user,
            password=self._config.password,
            database=self._config.database,
            connection_timeout=int(self._config.connection_timeout),
            autocommit=False,
            # Report 0 affected rows for no-op upserts so inserts and updates can be told apart.
            client_flags=[-ClientFlag.FOUND_ROWS],
        )
        cur = conn.cursor()
        try:
            # Bound row-lock waits so a contended upsert fails instead of hanging.
            cur.execute("SET SESSION innodb_lock_wait_timeout = %s", (int(self._config.lock_timeout),))
        finally:
            cur.close()
        return conn
