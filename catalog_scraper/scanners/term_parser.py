"""
Scrapes a whole term.

Sections come first (one paginated search), they define which courses exist,
then every course is fetched at bounded concurrency. Courses referenced as
requisites but without sections of their own are backfilled in one extra
pass.
"""
import asyncio
import logging
import math
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Iterable, Optional, TypeVar

from catalog_scraper import filters
from catalog_scraper.config import settings
from catalog_scraper.models.course import Course, Section, TermSnapshot
from catalog_scraper.models.keys import CourseKey
from catalog_scraper.models.requisite import CourseBackRef
from catalog_scraper.scanners.class_parser import get_all_course_refs, parse_class
from catalog_scraper.scanners.context import TermContext
from catalog_scraper.scanners.section_parser import (
    SECTION_SEARCH_PATH,
    parse_section_from_search_result,
)

logger = logging.getLogger(__name__)

# Banner refuses pages bigger than this
MAX_PAGE_SIZE = 500

T = TypeVar("T")
R = TypeVar("R")


class MissingDataError(Exception):
    """A paginated search came back incomplete."""


@dataclass
class Page:
    items: list
    total_count: int


PageRequest = Callable[[int, int], Awaitable[Optional[Page]]]


async def concat_pagination(do_request: PageRequest, items_per_request: int = MAX_PAGE_SIZE) -> list:
    """
    Send paginated requests and merge the results.

    A size-1 probe learns the total count, then every page is requested in
    parallel. Pages are concatenated in offset order whatever order they
    finish in.

    Args:
        do_request: (offset, page_size) -> Page, or None on failure
        items_per_request: page size, capped at MAX_PAGE_SIZE

    Raises:
        MissingDataError: if the probe or any page failed
    """
    items_per_request = min(items_per_request, MAX_PAGE_SIZE)

    count_request = await do_request(0, 1)
    if count_request is None:
        raise MissingDataError("Missing data")

    pages = [
        do_request(offset, items_per_request)
        for offset in range(0, count_request.total_count, items_per_request)
    ]
    logger.debug(
        f"Fetching {count_request.total_count} items in "
        f"{math.ceil(count_request.total_count / items_per_request)} pages"
    )

    chunks = await asyncio.gather(*pages)
    if any(chunk is None for chunk in chunks):
        raise MissingDataError("Missing data")

    return [item for chunk in chunks for item in chunk.items]


async def bounded_gather(
    items: Iterable[T],
    func: Callable[[T], Awaitable[R]],
    concurrency: Optional[int] = None,
) -> list[R]:
    """Run func over items with at most `concurrency` in flight, preserving order."""
    semaphore = asyncio.Semaphore(concurrency or settings.course_concurrency)

    async def run(item: T) -> R:
        async with semaphore:
            return await func(item)

    return await asyncio.gather(*(run(item) for item in items))


async def request_sections_for_term(ctx: TermContext) -> list[dict]:
    """Raw search results for every section in the term."""

    async def do_request(offset: int, page_size: int) -> Optional[Page]:
        response = await ctx.get(SECTION_SEARCH_PATH, params={
            "txt_term": ctx.term_id,
            "pageOffset": offset,
            "pageMaxSize": page_size,
        })
        body = response.json()
        if body.get("success"):
            return Page(items=body.get("data") or [], total_count=body.get("totalCount", 0))
        return None

    try:
        return await concat_pagination(do_request, settings.page_size)
    except MissingDataError:
        logger.error(f"Could not get section data for {ctx.term_id}")
        raise


async def parse_sections(ctx: TermContext) -> list[Section]:
    results = await request_sections_for_term(ctx)
    return [parse_section_from_search_result(r, ctx.host) for r in results]


async def add_course_refs(
    ctx: TermContext,
    classes: list[Course],
    known: dict[CourseKey, Any],
) -> list[Course]:
    """
    Backfill courses that are referenced but weren't found through sections.

    One pass only: references made by the backfilled courses themselves are
    left for the missing-requisite processor to flag.
    """
    refs: dict[CourseKey, CourseBackRef] = {}
    for course in classes:
        refs.update(get_all_course_refs(course))

    to_fetch = [ref for key, ref in refs.items() if key not in known]
    if not to_fetch:
        return classes

    logger.info(f"Backfilling {len(to_fetch)} referenced courses for term {ctx.term_id}")
    found = await bounded_gather(
        to_fetch,
        lambda ref: parse_class(ctx, ref.subject, ref.class_id),
    )
    return classes + [c for c in found if c is not None]


async def parse_term(ctx: TermContext, custom_scrape: Optional[bool] = None) -> TermSnapshot:
    """
    Scrape every course and section in a term.

    Raises:
        MissingDataError: if the section search came back incomplete
    """
    custom_scrape = settings.custom_scrape if custom_scrape is None else custom_scrape
    subjects = await ctx.description_by_code()
    sections = await parse_sections(ctx)

    if custom_scrape:
        sections = [s for s in sections if filters.keep_section(s)]

    # Ordered and unique
    course_keys: dict[CourseKey, Section] = {}
    for section in sections:
        course_keys.setdefault(section.course_key, section)

    logger.info(f"Term {ctx.term_id}: fetching {len(course_keys)} courses")
    unfiltered = await bounded_gather(
        list(course_keys),
        lambda key: parse_class(ctx, key.subject, key.class_id),
    )
    classes = [c for c in unfiltered if c is not None]

    if not custom_scrape:
        classes = await add_course_refs(ctx, classes, course_keys)

    logger.info(f"Term {ctx.term_id} scraped {len(classes)} classes and {len(sections)} sections")
    return TermSnapshot(classes=classes, sections=sections, subjects=dict(subjects))
