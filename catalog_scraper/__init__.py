"""Catalog Scraper - ingests Banner 9 course catalogs into term snapshots."""
__version__ = "0.1.0"
