"""
Competition Catalog Ingestion

This package provides:
- Source adapters for competition listings (HTML cards, HTML tables, JSON APIs)
- Fuzzy title matching to detect the same event across sources
- An ingestion coordinator that inserts new events or merges provenance

Sources: HKU Business School, HKUST BM Undergrad announcements, CTFTime
"""

__version__ = "1.0.0"
