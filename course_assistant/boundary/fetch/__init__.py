"""
Source document fetchers.
"""

from course_assistant.boundary.fetch.http_fetcher import (
    DocumentFetcher,
    FetchedDocument,
    HttpDocumentFetcher,
)

__all__ = ["DocumentFetcher", "FetchedDocument", "HttpDocumentFetcher"]
