"""
Celery tasks for catalog scraping.

The scrape itself is async; each task runs it to completion in a fresh
event loop.
"""
import asyncio
import logging
from typing import Optional

from celery.exceptions import MaxRetriesExceededError

from catalog_scraper.celery_app import celery_app
from catalog_scraper.config import settings
from catalog_scraper.scraper import scrape_catalog, write_snapshot

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=300,
    soft_time_limit=3 * 3600,
    time_limit=3 * 3600 + 300,
)
def scrape_catalog_task(
    self,
    term_ids: Optional[list[str]] = None,
    output_path: Optional[str] = None,
) -> dict:
    """
    Scrape the catalog and write the snapshot JSON.

    Args:
        term_ids: Terms to scrape (default: picked from Banner's term list)
        output_path: Where to write the snapshot (default: settings.output_path)

    Returns:
        dict with scrape results summary
    """
    task_id = self.request.id
    logger.info(f"Starting catalog scrape task {task_id} for terms: {term_ids or 'default'}")

    try:
        snapshot = asyncio.run(scrape_catalog(term_ids))
        path = write_snapshot(snapshot, output_path or settings.output_path)
        result = {
            "success": True,
            "total_classes": len(snapshot.classes),
            "total_sections": len(snapshot.sections),
            "total_subjects": len(snapshot.subjects),
            "output_path": str(path),
        }
        logger.info(f"Completed catalog scrape task {task_id}: {result}")
        return result
    except Exception as e:
        logger.error(f"Task {task_id} failed: {e}")
        try:
            raise self.retry(exc=e)
        except MaxRetriesExceededError:
            return {
                "success": False,
                "error": str(e),
            }
