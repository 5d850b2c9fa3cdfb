"""Tests for the pooled PostgreSQL storage layer."""

import json
from datetime import date
from unittest.mock import MagicMock, patch

import pytest

from ecfr_metrics.core.config import Settings
from ecfr_metrics.core.models import AgencyMetric, FlatAgency
from ecfr_metrics.storage.database import EcfrDatabase


class TestEcfrDatabase:
    """Test suite for EcfrDatabase"""

    @pytest.fixture
    def cursor(self):
        return MagicMock()

    @pytest.fixture
    def conn(self, cursor):
        conn = MagicMock()
        conn.cursor.return_value.__enter__.return_value = cursor
        return conn

    @pytest.fixture
    def pool(self, conn):
        pool = MagicMock()
        pool.closed = False
        pool.getconn.return_value = conn
        return pool

    @pytest.fixture
    def db(self, pool):
        config = Settings(postgres_host="db.internal", postgres_db="ecfr_test",
                          db_pool_min_connections=1, db_pool_max_connections=3)
        with patch("ecfr_metrics.storage.database.SimpleConnectionPool", return_value=pool) as pool_cls:
            database = EcfrDatabase(config)
        pool_cls.assert_called_once_with(
            1, 3, host="db.internal", port=5432, dbname="ecfr_test",
            user=config.postgres_user, password=config.postgres_password,
        )
        return database

    @pytest.fixture
    def agencies(self):
        return [
            FlatAgency(slug="usda", name="USDA", cfr_references='[{"title": 7, "chapter": "I"}]'),
            FlatAgency(slug="usda-fs", name="Forest Service", short_name="FS", parent_slug="usda"),
        ]

    def test_init_schema_creates_both_tables(self, db, conn, cursor, pool):
        db.init_schema()

        sql = cursor.execute.call_args.args[0]
        assert "CREATE TABLE IF NOT EXISTS agencies" in sql
        assert "CREATE TABLE IF NOT EXISTS agency_metrics" in sql
        assert "UNIQUE(agency_slug, date)" in sql
        conn.commit.assert_called_once()
        pool.putconn.assert_called_once_with(conn)

    def test_upsert_agencies_single_transaction(self, db, agencies, conn, cursor, pool):
        assert db.upsert_agencies(agencies) == 2

        assert cursor.execute.call_count == 2
        first_params = cursor.execute.call_args_list[0].args[1]
        second_params = cursor.execute.call_args_list[1].args[1]
        assert first_params == ("usda", "USDA", None, None, '[{"title": 7, "chapter": "I"}]')
        assert second_params == ("usda-fs", "Forest Service", "FS", "usda", "[]")
        conn.commit.assert_called_once()
        conn.rollback.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_upsert_agencies_keeps_parent_on_conflict(self, db, agencies, cursor):
        db.upsert_agencies(agencies)

        sql = cursor.execute.call_args.args[0]
        update_clause = sql.split("DO UPDATE", 1)[1]
        assert "ON CONFLICT (slug)" in sql
        assert "cfr_references = EXCLUDED.cfr_references" in update_clause
        assert "parent_slug" not in update_clause

    def test_upsert_agencies_rolls_back_batch(self, db, agencies, conn, cursor, pool):
        cursor.execute.side_effect = [None, RuntimeError("foreign key violation")]

        with pytest.raises(RuntimeError):
            db.upsert_agencies(agencies)

        conn.rollback.assert_called_once()
        conn.commit.assert_not_called()
        pool.putconn.assert_called_once_with(conn)

    def test_get_agencies_with_references(self, db, cursor):
        cursor.fetchall.return_value = [
            {"slug": "usda", "cfr_references": [{"title": 7, "chapter": "I"}]},
            {"slug": "fec", "cfr_references": json.dumps([{"title": "11", "chapter": "I"}])},
        ]

        agencies = db.get_agencies_with_references()

        assert [a.slug for a in agencies] == ["usda", "fec"]
        assert agencies[0].cfr_references[0].title == 7
        assert agencies[1].cfr_references[0].title == 11
        assert agencies[1].cfr_references[0].chapter == "I"
        sql = cursor.execute.call_args.args[0]
        assert "cfr_references IS NOT NULL" in sql
        assert "!= '[]'" in sql

    def test_upsert_agency_metric(self, db, conn, cursor, pool):
        metric = AgencyMetric(agency_slug="usda", date=date(2024, 3, 6), word_count=7,
                              restrictive_word_count=2, checksum="abc123")

        db.upsert_agency_metric(metric)

        sql, params = cursor.execute.call_args.args
        assert "ON CONFLICT (agency_slug, date) DO UPDATE" in sql
        assert params == ("usda", date(2024, 3, 6), 7, "abc123", 2)
        conn.commit.assert_called_once()
        pool.putconn.assert_called_once_with(conn)

    def test_upsert_agency_metric_failure_releases_connection(self, db, conn, cursor, pool):
        cursor.execute.side_effect = RuntimeError("connection reset")
        metric = AgencyMetric(agency_slug="usda", date=date(2024, 3, 6), word_count=0,
                              restrictive_word_count=0, checksum="no-text-found")

        with pytest.raises(RuntimeError):
            db.upsert_agency_metric(metric)

        conn.rollback.assert_called_once()
        pool.putconn.assert_called_once_with(conn)

    def test_list_agencies_sorted_by_name(self, db, cursor):
        cursor.fetchall.return_value = [{"slug": "usda", "name": "USDA", "short_name": None, "parent_slug": None}]

        assert db.list_agencies() == [{"slug": "usda", "name": "USDA", "short_name": None, "parent_slug": None}]
        assert "ORDER BY name ASC" in cursor.execute.call_args.args[0]

    def test_get_agency_metrics_sorted_by_date(self, db, cursor):
        cursor.fetchall.return_value = []

        assert db.get_agency_metrics("usda") == []
        sql, params = cursor.execute.call_args.args
        assert "ORDER BY date ASC" in sql
        assert params == ("usda",)

    def test_context_manager_closes_pool(self, db, pool):
        with db:
            pass

        pool.closeall.assert_called_once()

    def test_close_is_idempotent(self, db, pool):
        db.close()
        pool.closed = True
        db.close()

        pool.closeall.assert_called_once()
