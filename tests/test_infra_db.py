"""Tests for database layer - no real DB needed."""

import os
from unittest.mock import MagicMock, patch

import pytest


class TestGetConnPasswordFallback:
    """Tests for DB_PASSWORD fallback in get_conn()."""

    def test_db_password_fallback_dsn_without_password(self):
        from roomrack.infra.db import get_conn

        env = {"DATABASE_URL": "dbname=rack user=u host=h port=5432", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("roomrack.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with(
                "dbname=rack user=u host=h port=5432",
                password="from-env",
            )

    def test_db_password_not_used_when_dsn_has_password(self):
        from roomrack.infra.db import get_conn

        env = {"DATABASE_URL": "dbname=rack user=u password=from-dsn host=h", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("roomrack.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("dbname=rack user=u password=from-dsn host=h")

    def test_db_password_fallback_url_without_password(self):
        from roomrack.infra.db import get_conn

        env = {"DATABASE_URL": "postgres://u@h/rack", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("roomrack.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("postgres://u@h/rack", password="from-env")

    def test_db_password_not_used_when_url_has_password(self):
        from roomrack.infra.db import get_conn

        env = {"DATABASE_URL": "postgres://u:p@h/rack", "DB_PASSWORD": "from-env"}
        with patch.dict(os.environ, env, clear=True), \
             patch("roomrack.infra.db.psycopg2.connect", return_value=MagicMock()) as mock_connect:
            get_conn()
            mock_connect.assert_called_once_with("postgres://u:p@h/rack")

    def test_raises_without_database_url(self):
        from roomrack.infra.db import get_conn

        with patch.dict(os.environ, {}, clear=True):
            with pytest.raises(RuntimeError, match="DATABASE_URL"):
                get_conn()


class TestTxn:
    """Tests for txn() with a mocked connection."""

    def _conn(self):
        conn = MagicMock()
        cur = MagicMock()
        conn.cursor.return_value.__enter__.return_value = cur
        return conn, cur

    def test_commits_on_success(self):
        from roomrack.infra.db import txn

        conn, cur = self._conn()
        with txn(conn) as got:
            got.execute("SELECT 1")

        assert got is cur
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        conn.close.assert_not_called()

    def test_rollback_on_exception(self):
        from roomrack.infra.db import txn

        conn, _ = self._conn()
        with pytest.raises(ValueError):
            with txn(conn):
                raise ValueError("rollback test")

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()

    def test_owned_connection_is_closed(self):
        from roomrack.infra.db import txn

        conn, _ = self._conn()
        with patch("roomrack.infra.db.get_conn", return_value=conn):
            with txn():
                pass

        conn.commit.assert_called_once()
        conn.close.assert_called_once()


class TestHelpers:
    def test_fetchone(self):
        from roomrack.infra.db import fetchone

        cur = MagicMock()
        cur.fetchone.return_value = ("room-101",)

        assert fetchone(cur, "SELECT id FROM rooms WHERE id = %s", ("room-101",)) == ("room-101",)
        cur.execute.assert_called_once_with("SELECT id FROM rooms WHERE id = %s", ("room-101",))

    def test_fetchall(self):
        from roomrack.infra.db import fetchall

        cur = MagicMock()
        cur.fetchall.return_value = [(1,), (2,)]

        assert fetchall(cur, "SELECT 1") == [(1,), (2,)]
        cur.execute.assert_called_once_with("SELECT 1", None)
