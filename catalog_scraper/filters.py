"""
Section filters for custom (restricted) scrapes.

When CUSTOM_SCRAPE is set only sections passing every filter are kept, which
makes it practical to scrape a handful of subjects during development.
"""
import re
from typing import Optional

from catalog_scraper.config import Settings, settings
from catalog_scraper.models.course import Section


def campus(value: Optional[str], config: Settings = settings) -> bool:
    # No configured campuses means every campus
    return not config.filter_campuses or value in config.filter_campuses


def subject(value: str, config: Settings = settings) -> bool:
    return value in config.filter_subjects


def course_number(value: str, config: Settings = settings) -> bool:
    # Leading digits only, so "2500L" counts as 2500
    match = re.match(r"\d+", value or "")
    return bool(match) and int(match.group()) >= config.filter_min_course_number


def keep_section(section: Section, config: Settings = settings) -> bool:
    return (
        campus(section.campus, config)
        and subject(section.subject, config)
        and course_number(section.class_id, config)
    )
