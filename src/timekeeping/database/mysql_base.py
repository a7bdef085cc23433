from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional

import mysql.connector
from mysql.connector import errorcode

from ..common.logger import get_logger
from ..core.exceptions import (
    ConflictError,
    DatastoreUnavailable,
    DomainError,
    NotFoundError,
    TransactionError,
)

logger = get_logger("database")

_UNAVAILABLE_ERRNOS = frozenset(
    {
        errorcode.ER_LOCK_WAIT_TIMEOUT,
        errorcode.ER_LOCK_DEADLOCK,
        errorcode.CR_CONN_HOST_ERROR,
        errorcode.CR_CONNECTION_ERROR,
        errorcode.CR_SERVER_GONE_ERROR,
        errorcode.CR_SERVER_LOST,
    }
)


def translate_mysql_error(exc: mysql.connector.Error) -> DomainError:
    """Map a connector error onto the domain error taxonomy.

    The driver's message is logged here and never copied into the domain error.
    """

    errno = getattr(exc, "errno", None)
    if errno == errorcode.ER_DUP_ENTRY:
        return ConflictError("A record with the same unique key already exists.", kind="Duplicate")
    if errno == errorcode.ER_ROW_IS_REFERENCED_2:
        return ConflictError("The record is still referenced by attendance history.", kind="InUse")
    if errno == errorcode.ER_NO_REFERENCED_ROW_2:
        return NotFoundError("The referenced employee does not exist.", kind="UnknownEmployee")
    if errno in _UNAVAILABLE_ERRNOS or isinstance(exc, (mysql.connector.errors.InterfaceError, mysql.connector.errors.PoolError)):
        logger.warning("Datastore unavailable (errno=%s): %s", errno, exc)
        return DatastoreUnavailable("The datastore is temporarily unavailable, please retry.")
    logger.error("Datastore failure (errno=%s): %s", errno, exc)
    return TransactionError("The operation failed and was rolled back.")


@contextmanager
def db_cursor(conn_factory, *, dictionary: bool = True, isolation_level: Optional[str] = None):
    """Yield ``(conn, cur)`` inside one transaction.

    Commits when the block exits normally. Any exception rolls back before the
    connection is closed; connector errors are re-raised as domain errors.
    """

    try:
        conn = conn_factory.connect()
    except mysql.connector.Error as exc:
        raise translate_mysql_error(exc) from exc

    try:
        if isolation_level:
            conn.start_transaction(isolation_level=isolation_level)
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except mysql.connector.Error as exc:
        _safe_rollback(conn)
        raise translate_mysql_error(exc) from exc
    except Exception:
        _safe_rollback(conn)
        raise
    finally:
        conn.close()


def _safe_rollback(conn) -> None:
    try:
        conn.rollback()
    except mysql.connector.Error:
        # The original error is more useful than a failed rollback on a dead link.
        logger.warning("Rollback failed", exc_info=True)


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])
