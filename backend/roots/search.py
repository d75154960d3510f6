"""
Search Orchestration
Builds prompts from the user's selections, calls the grounded model and
turns its answer into records and de-duplicated sources
"""

import logging
import re
from enum import Enum
from typing import Optional

import config
from roots.llm import LLMClient
from roots.models import ResultBundle, SearchCriteria, SearchMode
from roots.parser import parse_records
from roots.prompts import build_business_prompt, build_recipe_prompt
from roots.schemas import business_list_schema, recipe_list_schema
from roots.sources import dedupe_sources


logger = logging.getLogger(__name__)

_ZIP_CODE = re.compile(r"^\d{5}$")

FALLBACK_SOURCE_TITLES = {
    SearchMode.RECIPE: "Recipe Source",
    SearchMode.BUSINESS: "Business Source",
}


class InvalidCriteriaError(ValueError):
    """Raised before any network call when the selections cannot be searched"""
    pass


class ZipCodeRequiredError(InvalidCriteriaError):
    """Business search needs a 5-digit ZIP code from the user"""
    pass


class SearchInProgressError(RuntimeError):
    """Raised when a session already has a search in flight"""
    pass


def validate_criteria(criteria: SearchCriteria, mode: SearchMode) -> None:
    """Reject criteria that must not be dispatched"""
    if not criteria.ingredients:
        raise InvalidCriteriaError("Please select at least one ingredient!")
    if criteria.max_time_minutes <= 0:
        raise InvalidCriteriaError("Maximum cooking time must be a positive number of minutes.")
    if mode == SearchMode.BUSINESS:
        if not criteria.zip_code or not _ZIP_CODE.match(criteria.zip_code):
            raise ZipCodeRequiredError("Please enter a valid 5-digit ZIP code to find businesses near you.")


class SearchOrchestrator:
    """Turns search criteria into a ResultBundle via the injected LLM client"""

    def __init__(
        self,
        client: LLMClient,
        initial_count: int = config.INITIAL_RESULT_COUNT,
        load_more_count: int = config.LOAD_MORE_RESULT_COUNT,
        structured_output: bool = config.STRUCTURED_OUTPUT
    ):
        self.client = client
        self.initial_count = initial_count
        self.load_more_count = load_more_count
        self.structured_output = structured_output and client.supports_structured_output

    def build_prompt(self, criteria: SearchCriteria, mode: SearchMode, count: int) -> str:
        if mode == SearchMode.BUSINESS:
            return build_business_prompt(criteria, count, structured=self.structured_output)
        return build_recipe_prompt(criteria, count, structured=self.structured_output)

    def _response_schema(self, mode: SearchMode):
        if not self.structured_output:
            return None
        if mode == SearchMode.BUSINESS:
            return business_list_schema()
        return recipe_list_schema()

    async def _run(self, criteria: SearchCriteria, mode: SearchMode, count: int) -> ResultBundle:
        prompt = self.build_prompt(criteria, mode, count)

        try:
            response = await self.client.generate(
                prompt,
                grounded=True,
                response_schema=self._response_schema(mode)
            )
        except Exception:
            logger.exception("Error fetching %s results", mode.value)
            return ResultBundle()

        records = parse_records(response.text, mode)
        sources = dedupe_sources(response.citations, FALLBACK_SOURCE_TITLES[mode])
        logger.info(
            "%s search returned %d records and %d sources",
            mode.value, len(records), len(sources)
        )
        return ResultBundle(records=records, sources=sources)

    async def search(
        self,
        criteria: SearchCriteria,
        mode: SearchMode = SearchMode.RECIPE
    ) -> ResultBundle:
        """Initial search; raises InvalidCriteriaError before dispatch"""
        validate_criteria(criteria, mode)
        return await self._run(criteria, mode, self.initial_count)

    async def load_more(
        self,
        criteria: SearchCriteria,
        existing_names: list[str],
        mode: SearchMode = SearchMode.RECIPE
    ) -> ResultBundle:
        """Ask for a larger batch, excluding names already shown"""
        validate_criteria(criteria, mode)
        return await self._run(criteria.excluding(existing_names), mode, self.load_more_count)


class SessionState(str, Enum):
    IDLE = "idle"
    SEARCHING = "searching"
    POPULATED = "populated"
    EMPTY = "empty"


class SearchSession:
    """
    Displayed results for one user.

    A new search replaces the results; load_more appends to them. Only one
    search may be in flight at a time.
    """

    def __init__(self, orchestrator: SearchOrchestrator):
        self.orchestrator = orchestrator
        self.state = SessionState.IDLE
        self.mode = SearchMode.RECIPE
        self.criteria: Optional[SearchCriteria] = None
        self.results = ResultBundle()

    @property
    def loading(self) -> bool:
        return self.state == SessionState.SEARCHING

    def _settle(self) -> None:
        if self.results.records:
            self.state = SessionState.POPULATED
        else:
            self.state = SessionState.EMPTY

    async def search(
        self,
        criteria: SearchCriteria,
        mode: SearchMode = SearchMode.RECIPE
    ) -> ResultBundle:
        """Run a fresh search; returns the session's results afterwards"""
        if self.loading:
            raise SearchInProgressError("A search is already in progress.")
        validate_criteria(criteria, mode)

        previous = self.state
        self.state = SessionState.SEARCHING
        try:
            bundle = await self.orchestrator.search(criteria, mode)
        finally:
            self.state = previous

        self.criteria = criteria
        self.mode = mode
        self.results = bundle
        self._settle()
        return self.results

    async def load_more(self) -> ResultBundle:
        """Append another batch to the current results"""
        if self.loading:
            raise SearchInProgressError("A search is already in progress.")
        if self.criteria is None:
            raise InvalidCriteriaError("Run a search before asking for more results.")

        previous = self.state
        self.state = SessionState.SEARCHING
        try:
            bundle = await self.orchestrator.load_more(
                self.criteria, self.results.names(), self.mode
            )
        finally:
            self.state = previous

        self.results = ResultBundle(
            records=self.results.records + bundle.records,
            sources=dedupe_sources(self.results.sources + bundle.sources)
        )
        self._settle()
        return self.results

    def to_dict(self) -> dict:
        return {
            "state": self.state.value,
            "mode": self.mode.value,
            "criteria": self.criteria.to_dict() if self.criteria else None,
            **self.results.to_dict()
        }
