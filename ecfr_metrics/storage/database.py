"""
PostgreSQL database for agency and agency metric storage.
"""

import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

import structlog
from psycopg2.extras import RealDictCursor
from psycopg2.pool import SimpleConnectionPool

from ..core.config import Settings, settings as default_settings
from ..core.models import AgencyMetric, AgencyReferences, FlatAgency

logger = structlog.get_logger(__name__)


SCHEMA_SQL = """
    CREATE TABLE IF NOT EXISTS agencies (
        slug VARCHAR(255) PRIMARY KEY,
        name TEXT NOT NULL,
        short_name VARCHAR(255),
        parent_slug VARCHAR(255) REFERENCES agencies(slug),
        cfr_references JSONB
    );

    CREATE TABLE IF NOT EXISTS agency_metrics (
        id SERIAL PRIMARY KEY,
        agency_slug VARCHAR(255) REFERENCES agencies(slug) ON DELETE CASCADE,
        date DATE NOT NULL,
        word_count INTEGER,
        checksum VARCHAR(255),
        restrictive_word_count INTEGER,
        UNIQUE(agency_slug, date)
    );
"""

# parent_slug is deliberately left out of the update set: an agency keeps the
# parent it was first stored under.
UPSERT_AGENCY_SQL = """
    INSERT INTO agencies (slug, name, short_name, parent_slug, cfr_references)
    VALUES (%s, %s, %s, %s, %s)
    ON CONFLICT (slug) DO UPDATE
    SET name = EXCLUDED.name,
        short_name = EXCLUDED.short_name,
        cfr_references = EXCLUDED.cfr_references
"""

UPSERT_METRIC_SQL = """
    INSERT INTO agency_metrics (agency_slug, date, word_count, checksum, restrictive_word_count)
    VALUES (%s, %s, %s, %s, %s)
    ON CONFLICT (agency_slug, date) DO UPDATE
    SET word_count = EXCLUDED.word_count,
        checksum = EXCLUDED.checksum,
        restrictive_word_count = EXCLUDED.restrictive_word_count
"""


class EcfrDatabase:
    """Pooled PostgreSQL storage for agencies and agency metrics.

    Use as a context manager so the pool is closed on every exit path::

        with EcfrDatabase() as db:
            db.init_schema()
    """

    def __init__(self, config: Optional[Settings] = None):
        config = config or default_settings
        self.pool = SimpleConnectionPool(
            config.db_pool_min_connections,
            config.db_pool_max_connections,
            **config.connection_kwargs,
        )
        logger.info("Opened database connection pool", host=config.postgres_host,
                    database=config.postgres_db)

    def __enter__(self) -> "EcfrDatabase":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def close(self) -> None:
        """Close every pooled connection."""
        if not self.pool.closed:
            self.pool.closeall()
            logger.info("Closed database connection pool")

    @contextmanager
    def get_connection(self) -> Iterator[Any]:
        """Borrow a pooled connection, returning it to the pool afterwards."""
        conn = self.pool.getconn()
        try:
            yield conn
        finally:
            self.pool.putconn(conn)

    def init_schema(self) -> None:
        """Create the agencies and agency_metrics tables if they are missing."""
        with self.get_connection() as conn:
            try:
                with conn.cursor() as cursor:
                    cursor.execute(SCHEMA_SQL)
                conn.commit()
            except Exception as e:
                conn.rollback()
                logger.error("Failed to create tables", error=str(e))
                raise
        logger.info("Database schema initialized")

    def upsert_agencies(self, agencies: List[FlatAgency]) -> int:
        """
        Insert or update every agency in a single transaction.

        Parents must precede their children in ``agencies``. If any row fails
        the whole batch is rolled back and the error is re-raised.

        Returns:
            Number of agencies written
        """
        logger.info("Saving agencies", count=len(agencies))

        with self.get_connection() as conn:
            try:
                with conn.cursor() as cursor:
                    for agency in agencies:
                        cursor.execute(UPSERT_AGENCY_SQL, (
                            agency.slug,
                            agency.name,
                            agency.short_name,
                            agency.parent_slug,
                            agency.cfr_references,
                        ))
                conn.commit()
            except Exception as e:
                logger.error("Failed writing agencies, rolling back", error=str(e))
                conn.rollback()
                raise

        logger.info("Saved agencies", count=len(agencies))
        return len(agencies)

    def get_agencies_with_references(self) -> List[AgencyReferences]:
        """Agencies whose cfr_references list is present and non-empty."""
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute("""
                    SELECT slug, cfr_references
                    FROM agencies
                    WHERE cfr_references IS NOT NULL
                    AND cfr_references::text != '[]'
                """)
                rows = cursor.fetchall()

        agencies = []
        for row in rows:
            references = row["cfr_references"]
            if isinstance(references, str):
                references = json.loads(references)
            agencies.append(AgencyReferences(slug=row["slug"], cfr_references=references))
        return agencies

    def upsert_agency_metric(self, metric: AgencyMetric) -> None:
        """Insert or replace the metric row for (agency_slug, date) and commit it."""
        with self.get_connection() as conn:
            try:
                with conn.cursor() as cursor:
                    cursor.execute(UPSERT_METRIC_SQL, (
                        metric.agency_slug,
                        metric.date,
                        metric.word_count,
                        metric.checksum,
                        metric.restrictive_word_count,
                    ))
                conn.commit()
            except Exception:
                conn.rollback()
                raise

        logger.info("Saved agency metrics", agency_slug=metric.agency_slug, date=metric.date.isoformat(),
                    word_count=metric.word_count, restrictive_word_count=metric.restrictive_word_count)

    def list_agencies(self) -> List[Dict[str, Any]]:
        """All agencies sorted by name."""
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute("""
                    SELECT slug, name, short_name, parent_slug
                    FROM agencies
                    ORDER BY name ASC
                """)
                return [dict(row) for row in cursor.fetchall()]

    def get_agency_metrics(self, slug: str) -> List[Dict[str, Any]]:
        """Metric time series for one agency, oldest first."""
        with self.get_connection() as conn:
            with conn.cursor(cursor_factory=RealDictCursor) as cursor:
                cursor.execute("""
                    SELECT date, word_count, restrictive_word_count, checksum
                    FROM agency_metrics
                    WHERE agency_slug = %s
                    ORDER BY date ASC
                """, (slug,))
                return [dict(row) for row in cursor.fetchall()]
