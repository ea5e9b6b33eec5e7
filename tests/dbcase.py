import io
import os
import sqlite3
import unittest
from contextlib import redirect_stderr, redirect_stdout
from unittest import mock

from database import StatementExecutor

SCHEMA = os.path.join(os.path.dirname(__file__), "schema.sql")


class DatabaseTestCase(unittest.TestCase):
    """in-memory sqlite database seeded from schema.sql"""

    def setUp(self):
        # autocommit connection, same as the server connection in production
        self.conn = sqlite3.connect(":memory:", isolation_level=None)
        self.conn.execute("PRAGMA foreign_keys = ON;")
        with open(SCHEMA, "r") as f:
            self.conn.executescript(f.read())
        self.executor = StatementExecutor(self.conn, sqlite3)

    def tearDown(self):
        self.conn.close()

    def run_with_input(self, fn, answers, *args):
        """call fn with scripted input(); returns (result, stdout, stderr)"""
        out, err = io.StringIO(), io.StringIO()
        with mock.patch("builtins.input", side_effect=list(answers)), \
                redirect_stdout(out), redirect_stderr(err):
            result = fn(*args)
        return result, out.getvalue(), err.getvalue()

    def scalar(self, sql, params=()):
        return self.conn.execute(sql, params).fetchone()[0]
