"""Web bounded context: the search projection and approval requests."""

from propflow.web.publication import PublicationService
from propflow.web.search import PropertySearchService

__all__ = ["PropertySearchService", "PublicationService"]
