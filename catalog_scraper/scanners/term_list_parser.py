"""Normalizes the upstream term list."""
import re

from catalog_scraper.config import settings
from catalog_scraper.models.course import TermInfo

NEU_COLLEGE = "NEU"
CPS_COLLEGE = "CPS"
LAW_COLLEGE = "LAW"

# "Spring 2020 Law Semester (View Only)" -> "Spring 2020 Semester"
TERM_TEXT_STRIP = re.compile(r"(Law\s|CPS\s)|\s\(View Only\)", re.IGNORECASE)


def determine_sub_college(description: str) -> str:
    """
    "Spring 2019 Semester" -> "NEU"
    "Spring 2019 Law Quarter" -> "LAW"
    "Spring 2019 CPS Quarter" -> "CPS"
    """
    if "CPS" in description:
        return CPS_COLLEGE
    if "Law" in description:
        return LAW_COLLEGE
    return NEU_COLLEGE


def serialize_terms_list(terms: list[dict], host: str = None) -> list[TermInfo]:
    """
    Turn raw {code, description} records into TermInfo objects.

    A term is active when its code is at least the smallest code of any term
    that isn't "View Only".
    """
    host = host or settings.host
    active_codes = [
        int(t["code"]) for t in terms if "View Only" not in t["description"]
    ]
    min_active = min(active_codes) if active_codes else None

    term_infos = []
    for term in terms:
        description = term["description"]
        term_infos.append(TermInfo(
            host=host,
            term_id=term["code"],
            text=TERM_TEXT_STRIP.sub("", description),
            sub_college=determine_sub_college(description),
            active=min_active is not None and int(term["code"]) >= min_active,
        ))
    return term_infos
