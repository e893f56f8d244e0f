from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import boto3

from feedbacks.config import Settings, load_settings_from_env
from feedbacks.errors import FeedbackError
from feedbacks.query import FeedbackQuery
from feedbacks.store import DynamoFeedbackStore
from reports.archive import ReportArchive, S3ReportArchive
from reports.render import RenderedReport, render_report
from reports.statistics import ReportStatistics, aggregate

logger = logging.getLogger(__name__)


def build_report(
    query: FeedbackQuery,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> tuple[ReportStatistics, RenderedReport]:
    """
    Collect every record of the window, aggregate it and render the report.

    Follows query cursors until exhausted, so the statistics always cover the
    whole window rather than a single page.
    """
    generated_at = now or datetime.now(timezone.utc)
    records = list(query.iter_all(start_date, end_date))

    stats = aggregate(records)
    logger.info("Total de feedbacks encontrados: %d", stats.total_count)
    if stats.total_count == 0:
        logger.info("Nenhum feedback encontrado no período")

    report = render_report(stats, generated_at)
    logger.info("Relatório gerado:\n%s", report.text)
    return stats, report


def generate_weekly_report(
    query: FeedbackQuery,
    archive: ReportArchive,
    start_date: Optional[str] = None,
    end_date: Optional[str] = None,
    now: Optional[datetime] = None,
) -> str:
    """
    Build the weekly report and store it in the archive.

    Returns:
        The artifact name (weekly-report-YYYY-MM-DD.txt)

    Failure modes:
        - StoreError if the query or the upload fails (logged, then re-raised)
        - A failed bucket check or creation is logged and the upload is still attempted
    """
    try:
        _, report = build_report(query, start_date, end_date, now)
    except FeedbackError as e:
        logger.error("Erro ao consultar feedbacks: %s", e)
        raise

    archive.ensure_bucket()
    archive.put_report(report.artifact_name, report.text)
    return report.artifact_name


def build_archive(settings: Settings) -> S3ReportArchive:
    client = boto3.client("s3", region_name=settings.region)
    return S3ReportArchive(client, settings.reports_bucket, region=settings.region)


def build_query(settings: Settings) -> FeedbackQuery:
    client = boto3.client("dynamodb", region_name=settings.region)
    store = DynamoFeedbackStore(
        client,
        table_name=settings.table_name,
        index_name=settings.index_name,
        partition_value=settings.partition_value,
    )
    return FeedbackQuery(store=store, page_size=settings.default_page_size)


def generate_handler(event: Optional[Dict[str, Any]], context: Any) -> str:
    """Scheduled entry point; the event may narrow the window with startDate/endDate."""
    event = event or {}
    settings = load_settings_from_env()
    return generate_weekly_report(
        build_query(settings),
        build_archive(settings),
        start_date=event.get("startDate") or None,
        end_date=event.get("endDate") or None,
    )
