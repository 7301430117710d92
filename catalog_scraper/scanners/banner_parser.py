"""
Top level Banner scraper: term discovery, term selection and multi-term runs.
"""
import asyncio
import logging
from typing import Optional

from catalog_scraper.config import settings
from catalog_scraper.models.course import TermInfo, TermSnapshot
from catalog_scraper.scanners.class_parser import parse_class
from catalog_scraper.scanners.context import TermContext
from catalog_scraper.scanners.request import FetchClient
from catalog_scraper.scanners.section_parser import parse_sections_of_class
from catalog_scraper.scanners.subject_parser import SubjectCache
from catalog_scraper.scanners.term_list_parser import serialize_terms_list
from catalog_scraper.scanners.term_parser import parse_term

logger = logging.getLogger(__name__)


class BannerScraper:
    """
    Scrapes catalog data for one Banner instance.

    One scraper is one run: the subject cache lives as long as it does, and
    every term gets its own TermContext (and so its own session cookies).
    """

    def __init__(self, client: FetchClient, base_url: Optional[str] = None, host: Optional[str] = None):
        self.client = client
        self.base_url = (base_url or settings.banner_base_url).rstrip("/")
        self.host = host or settings.host
        self.subjects = SubjectCache(client, self.base_url)

    def term_context(self, term_id: str) -> TermContext:
        return TermContext(
            self.client,
            term_id,
            subjects=self.subjects,
            base_url=self.base_url,
            host=self.host,
        )

    async def get_all_term_infos(self, max_terms: Optional[int] = None) -> list[TermInfo]:
        """Every term Banner lists, newest first."""
        response = await self.client.get(
            f"{self.base_url}/classSearch/getTerms",
            params={"offset": 1, "max": max_terms or settings.term_list_size, "searchTerm": ""},
        )
        terms = serialize_terms_list(response.json(), self.host)
        return sorted(terms, key=lambda t: int(t.term_id), reverse=True)

    def get_term_ids_to_scrape(self, term_ids: list[str]) -> list[str]:
        """
        Pick which terms to scrape.

        TERMS_TO_SCRAPE wins when set (ids Banner doesn't know are skipped),
        otherwise the newest NUMBER_OF_TERMS terms.
        """
        override = settings.term_ids_override
        if override:
            for term_id in override:
                if term_id not in term_ids:
                    logger.warning(f"{term_id} not in list of term IDs from Banner! Skipping")
            logger.info("Scraping using user-provided TERMS_TO_SCRAPE")
            return [t for t in override if t in term_ids]

        return term_ids[:settings.number_of_terms]

    async def scrape_terms(self, term_ids: list[str]) -> TermSnapshot:
        """
        Scrape terms concurrently and merge them in the order given.

        Every term runs to completion before failures are looked at. A failed
        term aborts the run unless SKIP_FAILED_TERMS is set.
        """
        logger.info(f"Scraping terms: {term_ids}")
        results = await asyncio.gather(
            *(parse_term(self.term_context(t)) for t in term_ids),
            return_exceptions=True,
        )

        snapshot = TermSnapshot()
        for term_id, result in zip(term_ids, results):
            if isinstance(result, BaseException):
                if not settings.skip_failed_terms:
                    raise result
                logger.error(f"Skipping term {term_id} after failure: {result!r}")
                continue
            snapshot = snapshot.merge(result)
        return snapshot

    async def scrape_class(self, term_id: str, subject: str, class_id: str) -> TermSnapshot:
        """One course and its sections. Either list may be empty."""
        ctx = self.term_context(term_id)
        course, sections = await asyncio.gather(
            parse_class(ctx, subject, class_id),
            parse_sections_of_class(ctx, subject, class_id),
        )
        return TermSnapshot(
            classes=[course] if course is not None else [],
            sections=sections or [],
        )
