import os
import sys
from contextlib import closing, contextmanager
from typing import Any, Sequence

import psycopg
from termcolor import cprint

from logger import get_logger

_logger = get_logger(__name__)

DB_HOST = os.getenv("GAMERENTAL_DB_HOST", "localhost")


class ExecutionError(Exception):
    """a statement could not run; carries the driver's message"""


# statement layer
class StatementExecutor:
    """run one statement per call over a db-api connection opened in autocommit mode

    sql is written with `?` placeholders; drivers using the pyformat paramstyle
    (psycopg) get them rewritten to `%s`.
    """
    def __init__(self, conn, driver=psycopg):
        self.conn = conn
        self.driver = driver
        self._in_transaction = False

    def _adapt(self, sql: str) -> str:
        """rewrite placeholders for the driver's paramstyle"""
        if self.driver.paramstyle in ("format", "pyformat"):
            return sql.replace("?", "%s")
        return sql

    @contextmanager
    def _cursor(self, sql: str, params: Sequence[Any]):
        """open a cursor, run sql on it, always close it"""
        _logger.debug(f"executing {sql!r} with {tuple(params)!r}")
        try:
            with closing(self.conn.cursor()) as cur:
                cur.execute(self._adapt(sql), tuple(params))
                yield cur
        except self.driver.Error as e:
            raise ExecutionError(str(e)) from e

    def execute(self, sql: str, params: Sequence[Any] = ()) -> None:
        """run an insert / update / create / drop"""
        with self._cursor(sql, params):
            pass

    def query_print(self, sql: str, params: Sequence[Any] = ()) -> int:
        """print header once then every row tab-separated; return row count"""
        count = 0
        with self._cursor(sql, params) as cur:
            for row in cur:
                if count == 0:
                    print("\t".join(col[0] for col in cur.description))
                print("\t".join(_text(v, "null") for v in row))
                count += 1
        return count

    def query_rows(self, sql: str, params: Sequence[Any] = ()) -> list[list[str | None]]:
        """return every row as a list of string fields (no header)"""
        with self._cursor(sql, params) as cur:
            return [[_text(v) for v in row] for row in cur.fetchall()]

    def query_count(self, sql: str, params: Sequence[Any] = ()) -> int:
        """return the number of rows a query yields"""
        with self._cursor(sql, params) as cur:
            return sum(1 for _ in cur)

    @contextmanager
    def transaction(self):
        """group statements; commit on success, roll back and re-raise on failure"""
        if self._in_transaction:
            yield self
            return
        self.execute("BEGIN")
        self._in_transaction = True
        try:
            yield self
        except BaseException:
            _logger.debug("rolling back transaction")
            try:
                self.conn.rollback()
            except self.driver.Error as e:
                _logger.debug(f"rollback failed: {e}")
            raise
        else:
            try:
                self.conn.commit()
            except self.driver.Error as e:
                raise ExecutionError(str(e)) from e
        finally:
            self._in_transaction = False


def _text(value, null=None):
    """stringify a column value"""
    if value is None:
        return null
    return str(value)


# connection layer
class DatabaseManager:
    """own the single connection to the database server"""
    def __init__(self, dbname: str, port: int, user: str, password: str = "", host: str = DB_HOST):
        print("connecting to database...", end="")
        url = f"postgresql://{host}:{port}/{dbname}"
        print(f"connection url: {url}\n")
        try:
            self.conn = psycopg.connect(
                host=host,
                port=port,
                dbname=dbname,
                user=user,
                password=password,
                autocommit=True,
            )
        except psycopg.Error as e:
            cprint(f"unable to connect to database: {e}", "red", file=sys.stderr)
            cprint("make sure you started postgres on this machine", "yellow")
            sys.exit(1)
        _logger.info(f"connected to {url} as {user}")
        print("done")
        self.executor = StatementExecutor(self.conn, psycopg)

    def cleanup(self):
        """close the connection if it is open"""
        if self.conn is None:
            return
        try:
            self.conn.close()
        except psycopg.Error as e:
            _logger.debug(f"ignored error while closing connection: {e}")
        self.conn = None
