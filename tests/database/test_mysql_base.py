from __future__ import annotations

import pytest
from mysql.connector import errors

from timekeeping.core.exceptions import (
    ConflictError,
    DatastoreUnavailable,
    NotFoundError,
    TransactionError,
    ValidationError,
)
from timekeeping.database.mysql_base import db_cursor, translate_mysql_error


def test_commits_and_closes_on_success(fake_db):
    factory = fake_db({"rows": [{"x": 1}]})

    with db_cursor(factory) as (_, cur):
        cur.execute("SELECT 1 AS x")
        assert cur.fetchone() == {"x": 1}

    assert factory.conn.commits == 1
    assert factory.conn.rollbacks == 0
    assert factory.conn.closed


def test_connector_error_rolls_back_and_is_translated(fake_db):
    factory = fake_db({}, errors.DatabaseError(msg="boom", errno=1366))

    with pytest.raises(TransactionError):
        with db_cursor(factory) as (_, cur):
            cur.execute("INSERT 1")
            cur.execute("INSERT 2")

    assert factory.conn.commits == 0
    assert factory.conn.rollbacks == 1
    assert factory.conn.closed


def test_domain_error_inside_block_rolls_back_unchanged(fake_db):
    factory = fake_db()

    with pytest.raises(ValidationError):
        with db_cursor(factory):
            raise ValidationError("bad")

    assert factory.conn.commits == 0
    assert factory.conn.rollbacks == 1


def test_isolation_level_starts_explicit_transaction(fake_db):
    factory = fake_db()

    with db_cursor(factory, isolation_level="READ COMMITTED"):
        pass

    assert factory.conn.isolation_level == "READ COMMITTED"


def test_connect_failure_is_unavailable(fake_db):
    factory = fake_db(connect_error=errors.InterfaceError(msg="Can't connect", errno=2003))

    with pytest.raises(DatastoreUnavailable):
        with db_cursor(factory):
            pass


@pytest.mark.parametrize(
    "exc, expected, kind",
    [
        (errors.IntegrityError(msg="dup", errno=1062), ConflictError, "Duplicate"),
        (errors.IntegrityError(msg="fk", errno=1452), NotFoundError, "UnknownEmployee"),
        (errors.IntegrityError(msg="parent row", errno=1451), ConflictError, "InUse"),
        (errors.DatabaseError(msg="lock wait", errno=1205), DatastoreUnavailable, "DatastoreUnavailable"),
        (errors.DatabaseError(msg="deadlock", errno=1213), DatastoreUnavailable, "DatastoreUnavailable"),
        (errors.OperationalError(msg="gone away", errno=2006), DatastoreUnavailable, "DatastoreUnavailable"),
        (errors.ProgrammingError(msg="syntax", errno=1064), TransactionError, "TransactionError"),
    ],
)
def test_translate_mysql_error(exc, expected, kind):
    translated = translate_mysql_error(exc)

    assert isinstance(translated, expected)
    assert translated.kind == kind
    # Driver text stays in the logs.
    assert exc.msg not in translated.message
