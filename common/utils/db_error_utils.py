"""
IntegrityError -> StoreError

Translates driver-specific integrity errors into a single StoreError shape so
that callers can branch on "unique violation on column X" without knowing
which database is behind the session.

- PostgreSQL: pgcode 23505 / 23503, detail "Key (sort_order)=(5) already exists."
- MySQL (pymysql): errno 1062 / 1452
- SQLite: "UNIQUE constraint failed: doctor.sort_order"
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple

from sqlalchemy.exc import IntegrityError


class StoreErrorCode(str, Enum):
    UNIQUE_VIOLATION = '23505'
    FOREIGN_KEY_VIOLATION = '23503'
    NOT_NULL_VIOLATION = '23502'
    UNKNOWN = 'unknown'


MYSQL_ERRNO_CODES = {
    1062: StoreErrorCode.UNIQUE_VIOLATION,
    1451: StoreErrorCode.FOREIGN_KEY_VIOLATION,
    1452: StoreErrorCode.FOREIGN_KEY_VIOLATION,
    1048: StoreErrorCode.NOT_NULL_VIOLATION,
}

_PG_KEY_PATTERN = re.compile(r'Key \(([^)]+)\)=')
_MYSQL_DUP_KEY_PATTERN = re.compile(r"for key '([^']+)'")
_MYSQL_FK_PATTERN = re.compile(r'FOREIGN KEY \(`([^`]+)`\)')
_MYSQL_NOT_NULL_PATTERN = re.compile(r"Column '([^']+)' cannot be null")
_SQLITE_PATTERN = re.compile(r'(UNIQUE|NOT NULL) constraint failed: (.+)$')


@dataclass
class StoreError:
    code: StoreErrorCode
    message: str
    detail: str = ''
    columns: Tuple[str, ...] = field(default_factory=tuple)

    @property
    def is_unique_violation(self) -> bool:
        return self.code == StoreErrorCode.UNIQUE_VIOLATION

    @property
    def is_foreign_key_violation(self) -> bool:
        return self.code == StoreErrorCode.FOREIGN_KEY_VIOLATION

    def names_column(self, column: str) -> bool:
        return column in self.columns

    def is_unique_violation_on(self, column: str) -> bool:
        return self.is_unique_violation and self.names_column(column)


def _strip_table(name: str) -> str:
    return name.strip().strip('`"').split('.')[-1]


def _from_postgres(orig) -> StoreError:
    pgcode = getattr(orig, 'pgcode', None) or getattr(orig, 'sqlstate', None)
    diag = getattr(orig, 'diag', None)
    detail = getattr(diag, 'message_detail', None) or ''
    message = str(orig).strip()

    try:
        code = StoreErrorCode(pgcode)
    except ValueError:
        code = StoreErrorCode.UNKNOWN

    columns = ()
    match = _PG_KEY_PATTERN.search(detail or message)
    if match:
        columns = tuple(c.strip() for c in match.group(1).split(','))
    elif code == StoreErrorCode.NOT_NULL_VIOLATION:
        column_name = getattr(diag, 'column_name', None)
        if column_name:
            columns = (column_name,)

    return StoreError(code=code, message=message, detail=detail, columns=columns)


def _from_mysql(orig) -> StoreError:
    errno, message = orig.args[0], str(orig.args[1])
    code = MYSQL_ERRNO_CODES.get(errno, StoreErrorCode.UNKNOWN)

    columns = ()
    for pattern in (_MYSQL_DUP_KEY_PATTERN, _MYSQL_FK_PATTERN, _MYSQL_NOT_NULL_PATTERN):
        match = pattern.search(message)
        if match:
            columns = (_strip_table(match.group(1)),)
            break

    return StoreError(code=code, message=message, detail=message, columns=columns)


def _from_sqlite(message: str) -> StoreError:
    if 'FOREIGN KEY constraint failed' in message:
        return StoreError(code=StoreErrorCode.FOREIGN_KEY_VIOLATION, message=message, detail=message)

    match = _SQLITE_PATTERN.search(message)
    if not match:
        return StoreError(code=StoreErrorCode.UNKNOWN, message=message, detail=message)

    code = StoreErrorCode.UNIQUE_VIOLATION if match.group(1) == 'UNIQUE' else StoreErrorCode.NOT_NULL_VIOLATION
    columns = tuple(_strip_table(c) for c in match.group(2).split(','))
    return StoreError(code=code, message=message, detail=message, columns=columns)


def classify_integrity_error(error: IntegrityError) -> StoreError:
    orig = getattr(error, 'orig', None)

    if orig is not None and (hasattr(orig, 'pgcode') or hasattr(orig, 'sqlstate')):
        return _from_postgres(orig)

    if orig is not None and len(getattr(orig, 'args', ())) >= 2 and isinstance(orig.args[0], int):
        return _from_mysql(orig)

    return _from_sqlite(str(orig if orig is not None else error))
