"""
Catalog scraper entry point.

Ties the Banner scraper and the processors together:

    async with FetchClient() as client:
        snapshot = await CatalogScraper(client).scrape()
"""
import logging
import time
from pathlib import Path
from typing import Optional

from catalog_scraper.models.course import TermSnapshot
from catalog_scraper.processors import run_processors
from catalog_scraper.scanners.banner_parser import BannerScraper
from catalog_scraper.scanners.request import FetchClient

logger = logging.getLogger(__name__)


class CatalogScraper:
    """Scrape terms and post-process them into one snapshot."""

    def __init__(self, client: FetchClient, banner: Optional[BannerScraper] = None):
        self.client = client
        self.banner = banner or BannerScraper(client)

    async def main(self, term_ids: list[str]) -> TermSnapshot:
        """Scrape the given terms, then mark missing requisites and cross-reference."""
        snapshot = await self.banner.scrape_terms(term_ids)
        return run_processors(snapshot)

    async def scrape(self, term_ids: Optional[list[str]] = None) -> TermSnapshot:
        """
        Full run. Without term_ids, terms are picked from Banner's term list
        using TERMS_TO_SCRAPE / NUMBER_OF_TERMS.
        """
        start = time.monotonic()
        if term_ids is None:
            all_terms = await self.banner.get_all_term_infos()
            term_ids = self.banner.get_term_ids_to_scrape([t.term_id for t in all_terms])

        snapshot = await self.main(term_ids)

        elapsed = time.monotonic() - start
        logger.info(
            f"Done scraping {len(term_ids)} terms: {len(snapshot.classes)} classes, "
            f"{len(snapshot.sections)} sections in {elapsed / 60:.2f} minutes"
        )
        return snapshot


def write_snapshot(snapshot: TermSnapshot, path: str) -> Path:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(snapshot.to_json(), encoding="utf-8")
    logger.info(f"Wrote snapshot to {output}")
    return output


async def scrape_catalog(term_ids: Optional[list[str]] = None) -> TermSnapshot:
    async with FetchClient() as client:
        return await CatalogScraper(client).scrape(term_ids)
