"""
Main pipeline orchestrator for the eCFR agency metrics system.
"""

import uuid
from datetime import date, datetime, timezone
from typing import Optional

import structlog

from ..core.config import Settings, settings as default_settings
from ..core.models import AgencyMetric, AgencyReferences, PipelineRun
from ..ingestion.date_resolver import utc_today
from ..ingestion.ecfr_client import EcfrClient
from ..processing.agency_flattener import flatten_agencies
from ..processing.text_metrics import AgencyTextAggregator
from ..storage.database import EcfrDatabase

logger = structlog.get_logger(__name__)


class EcfrMetricsPipeline:
    """Sequences agency sync followed by per-agency metric computation."""

    def __init__(self, db: EcfrDatabase, client: Optional[EcfrClient] = None,
                 config: Optional[Settings] = None):
        self.config = config or default_settings
        self.db = db
        self.client = client or EcfrClient(self.config)

    def run(self, run_date: Optional[date] = None) -> PipelineRun:
        """
        Execute the full pipeline: sync agencies, then compute metrics.

        Args:
            run_date: Date the metric rows are recorded under. Defaults to today (UTC).

        Returns:
            PipelineRun: Results of the pipeline execution.
        """
        run_date = run_date or utc_today()
        pipeline_run = PipelineRun(
            run_id=str(uuid.uuid4()),
            start_time=datetime.now(timezone.utc),
            run_date=run_date,
        )
        log = logger.bind(run_id=pipeline_run.run_id)
        log.info("Starting full data pipeline", run_date=run_date.isoformat())

        try:
            pipeline_run.agencies_synced = self.sync_agencies()
            self.process_agency_metrics(run_date, pipeline_run)

            pipeline_run.status = "completed"
        except Exception as e:
            pipeline_run.status = "failed"
            pipeline_run.error_message = str(e)
            log.error("Pipeline failed", error=str(e), exc_info=True)

        pipeline_run.end_time = datetime.now(timezone.utc)
        duration = (pipeline_run.end_time - pipeline_run.start_time).total_seconds()
        log.info("Pipeline finished",
                 status=pipeline_run.status,
                 duration_seconds=duration,
                 agencies_synced=pipeline_run.agencies_synced,
                 agencies_processed=pipeline_run.agencies_processed,
                 agencies_failed=len(pipeline_run.failed_agencies))
        return pipeline_run

    def sync_agencies(self) -> int:
        """Fetch, flatten and store the agency listing. Returns the number of rows written."""
        raw_agencies = self.client.fetch_agencies()
        flat_agencies = flatten_agencies(raw_agencies)
        return self.db.upsert_agencies(flat_agencies)

    def process_agency_metrics(self, run_date: date, pipeline_run: PipelineRun) -> None:
        """Compute and store metrics for every agency that has CFR references.

        A failure for one agency is logged and recorded on ``pipeline_run``;
        the remaining agencies are still processed.
        """
        agencies = self.db.get_agencies_with_references()
        logger.info("Processing metrics for agencies", count=len(agencies))

        aggregator = AgencyTextAggregator(
            self.client,
            lookback_days=self.config.date_lookback_days,
            today=run_date,
        )

        for agency in agencies:
            try:
                self.process_agency(agency, aggregator, run_date)
                pipeline_run.agencies_processed += 1
            except Exception as e:
                pipeline_run.failed_agencies[agency.slug] = str(e)
                logger.error("Failed to process agency metrics", agency_slug=agency.slug,
                             error=str(e), exc_info=True)

        logger.info("Finished processing agency metrics",
                    processed=pipeline_run.agencies_processed,
                    failed=sorted(pipeline_run.failed_agencies))

    def process_agency(self, agency: AgencyReferences, aggregator: AgencyTextAggregator,
                       run_date: date) -> AgencyMetric:
        logger.info("Processing agency", agency_slug=agency.slug,
                    reference_count=len(agency.cfr_references))

        metrics = aggregator.metrics_for(agency.cfr_references)
        metric = AgencyMetric(agency_slug=agency.slug, date=run_date, **metrics.model_dump())
        self.db.upsert_agency_metric(metric)
        return metric
