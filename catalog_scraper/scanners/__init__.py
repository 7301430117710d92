"""Banner scanners - fetching and parsing upstream catalog data."""
from .banner_parser import BannerScraper
from .context import TermContext
from .request import FetchClient
from .session import SessionError
from .term_parser import MissingDataError, concat_pagination

__all__ = [
    "BannerScraper",
    "FetchClient",
    "MissingDataError",
    "SessionError",
    "TermContext",
    "concat_pagination",
]
