from __future__ import annotations

from datetime import datetime

import pytest
from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError, OperationalError

from qr_attendance.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from qr_attendance.core.enums import AttendanceStatus, MarkedBy

FIRST_SCAN = datetime(2026, 3, 2, 9, 1, 0)
RESCAN = datetime(2026, 3, 2, 9, 20, 0)


class StubCursor:
    def __init__(self, db: "StubConnFactory"):
        self._db = db
        self._row = None
        self.lastrowid = None

    def execute(self, sql, params=()):
        self._db.statements.append(" ".join(sql.split()))
        if sql.lstrip().startswith("INSERT"):
            if self._db.insert_error is not None:
                raise self._db.insert_error
            self.lastrowid = 7
        else:
            self._row = self._db.stored_row

    def fetchone(self):
        return self._row

    def fetchall(self):
        return [self._row] if self._row else []

    def close(self):
        pass


class StubConnection:
    def __init__(self, db: "StubConnFactory"):
        self._db = db

    def cursor(self, dictionary=False):
        return StubCursor(self._db)

    def commit(self):
        self._db.commits += 1

    def rollback(self):
        self._db.rollbacks += 1

    def close(self):
        pass


class StubConnFactory:
    """Stands in for DatabaseConnection: every connect() shares the same fake table state."""

    def __init__(self, *, insert_error=None, stored_row=None):
        self.insert_error = insert_error
        self.stored_row = stored_row
        self.statements: list[str] = []
        self.commits = 0
        self.rollbacks = 0

    def connect(self):
        return StubConnection(self)


def _insert(repo: MySQLAttendanceRepository):
    return repo.insert_if_absent(
        session_id=1,
        student_id=100,
        status=AttendanceStatus.LATE,
        marked_at=RESCAN,
        marked_by=MarkedBy.SELF,
    )


def _duplicate() -> IntegrityError:
    return IntegrityError(msg="Duplicate entry '1-100' for key 'uq_attendance_session_student'", errno=errorcode.ER_DUP_ENTRY)


def test_first_insert_creates_record():
    db = StubConnFactory()

    result = _insert(MySQLAttendanceRepository(db))

    assert result.created is True
    assert result.record.attendance_id == 7
    assert result.record.status == AttendanceStatus.LATE
    assert db.commits == 1


def test_duplicate_key_returns_stored_record_unchanged():
    stored = {
        "attendance_id": 3,
        "session_id": 1,
        "student_id": 100,
        "status": "PRESENT",
        "marked_at": FIRST_SCAN,
        "marked_by": "SELF",
    }
    db = StubConnFactory(insert_error=_duplicate(), stored_row=stored)

    result = _insert(MySQLAttendanceRepository(db))

    assert result.created is False
    assert result.record.attendance_id == 3
    assert result.record.status == AttendanceStatus.PRESENT
    assert result.record.marked_at == FIRST_SCAN
    assert db.rollbacks == 1
    assert db.statements[-1].startswith("SELECT")
    # Nothing but the one INSERT ever tried to write.
    assert sum(s.startswith(("INSERT", "UPDATE")) for s in db.statements) == 1


def test_duplicate_key_without_stored_row_is_an_error():
    db = StubConnFactory(insert_error=_duplicate(), stored_row=None)

    with pytest.raises(RuntimeError):
        _insert(MySQLAttendanceRepository(db))


@pytest.mark.parametrize(
    "error",
    [
        IntegrityError(msg="Cannot add or update a child row", errno=errorcode.ER_NO_REFERENCED_ROW_2),
        OperationalError(msg="Lost connection to MySQL server during query", errno=errorcode.CR_SERVER_LOST),
    ],
)
def test_other_errors_propagate(error):
    db = StubConnFactory(insert_error=error, stored_row=None)

    with pytest.raises(type(error)):
        _insert(MySQLAttendanceRepository(db))
    assert not any(s.startswith("SELECT") for s in db.statements)
    assert db.rollbacks == 1
