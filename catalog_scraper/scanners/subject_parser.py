"""Subject abbreviation tables.

Prerequisite tables name subjects by description ("Computer Science"), while
courses are keyed by code ("CS"), so every term needs both directions.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from html import unescape

from catalog_scraper.scanners.request import FetchClient

logger = logging.getLogger(__name__)

# More than this many subjects in a term would silently truncate the table
MAX_SUBJECTS = 500


@dataclass
class SubjectTables:
    """Both directions of the subject code / description mapping for a term."""
    code_by_description: dict[str, str] = field(default_factory=dict)
    description_by_code: dict[str, str] = field(default_factory=dict)


def create_description_table(subjects: list[dict]) -> dict[str, str]:
    """description -> code"""
    return {unescape(s["description"]): s["code"] for s in subjects}


def create_abbr_table(subjects: list[dict]) -> dict[str, str]:
    """code -> description"""
    return {s["code"]: unescape(s["description"]) for s in subjects}


async def request_subjects(client: FetchClient, base_url: str, term_id: str) -> list[dict]:
    response = await client.get(
        f"{base_url}/courseSearch/get_subject",
        params={"searchTerm": "", "term": term_id, "offset": 1, "max": MAX_SUBJECTS},
    )
    subjects = response.json()
    if len(subjects) >= MAX_SUBJECTS:
        logger.warning(f"Term {term_id} returned {len(subjects)} subjects, table may be truncated")
    return subjects


async def get_subject_tables(client: FetchClient, base_url: str, term_id: str) -> SubjectTables:
    logger.info(f"Scraping subject abbreviations for term {term_id}")
    subjects = await request_subjects(client, base_url, term_id)
    return SubjectTables(
        code_by_description=create_description_table(subjects),
        description_by_code=create_abbr_table(subjects),
    )


class SubjectCache:
    """
    Subject tables memoized per term for one scrape run.

    The first caller for a term starts the fetch; callers arriving while it
    is in flight await the same task instead of issuing their own request.
    A failed fetch is evicted so the next caller tries again.
    """

    def __init__(self, client: FetchClient, base_url: str):
        self.client = client
        self.base_url = base_url
        self._tasks: dict[str, asyncio.Task] = {}

    async def get(self, term_id: str) -> SubjectTables:
        task = self._tasks.get(term_id)
        if task is None:
            task = asyncio.ensure_future(get_subject_tables(self.client, self.base_url, term_id))
            self._tasks[term_id] = task
        try:
            return await task
        except Exception:
            if self._tasks.get(term_id) is task:
                del self._tasks[term_id]
            raise

    async def code_by_description(self, term_id: str) -> dict[str, str]:
        return (await self.get(term_id)).code_by_description

    async def description_by_code(self, term_id: str) -> dict[str, str]:
        return (await self.get(term_id)).description_by_code
