"""
Roots & Recipes Core Module
Search orchestration, response parsing and link enrichment
"""

from roots.cards import Card, CardHandle, enrich_cards
from roots.llm import LLMError, RateLimitError, APIError, LLMClient, create_client
from roots.metadata import fetch_metadata
from roots.models import SearchCriteria, SearchMode, ResultBundle
from roots.parser import parse_records
from roots.search import (
    SearchOrchestrator,
    SearchSession,
    InvalidCriteriaError,
    ZipCodeRequiredError,
    SearchInProgressError,
)
from roots.sources import dedupe_sources

__all__ = [
    "Card",
    "CardHandle",
    "enrich_cards",
    "LLMError",
    "RateLimitError",
    "APIError",
    "LLMClient",
    "create_client",
    "fetch_metadata",
    "SearchCriteria",
    "SearchMode",
    "ResultBundle",
    "parse_records",
    "SearchOrchestrator",
    "SearchSession",
    "InvalidCriteriaError",
    "ZipCodeRequiredError",
    "SearchInProgressError",
    "dedupe_sources",
]
