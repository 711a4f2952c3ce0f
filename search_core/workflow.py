"""High level orchestration of one provider-backed search."""
from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from typing import Any, Callable, List, Mapping, Optional

import aiohttp

from .config import SearchRequest, create_request
from .errors import ProviderJobFailed, ProviderJobTimedOut, ProviderUnavailable
from .models import SOURCE_FALLBACK, SOURCE_PROVIDER, RunHandle, SearchKind, SearchResponse
from .poller import JobPoller, Sleeper
from .processor import refine_results, summarise_results
from .provider import ProviderClient, open_session
from .settings import Settings
from .sources import SOURCES, SourceConfig

LOGGER = logging.getLogger(__name__)

_FALLBACK_REASONS = {
    "start-failed": "the search provider could not be reached",
    "job-failed": "the search provider reported a failed run",
    "timeout": "the search provider did not finish in time",
    "fetch-failed": "the search results could not be downloaded",
    "provider-empty": "the search provider returned no usable results",
}


@dataclass
class SearchOrchestrator:
    """Validate, submit, poll, normalise, and fall back when needed."""

    settings: Settings
    session_factory: Callable[[Settings], aiohttp.ClientSession] = open_session
    sleep: Sleeper = field(default=asyncio.sleep)

    async def search(self, request: SearchRequest) -> SearchResponse:
        async with self.session_factory(self.settings) as session:
            client = ProviderClient(self.settings, session)
            return await self.run_search(request, client)

    async def run_search(self, request: SearchRequest, client: ProviderClient) -> SearchResponse:
        source = SOURCES[request.kind]
        handle = await self._start(client, source, request)
        if handle is None:
            return self._fallback(source, request, "start-failed")

        policy = source.poll_policy(self.settings)
        poller = JobPoller(client, sleep=self.sleep)
        outcome = await poller.poll(handle, policy.interval, policy.max_attempts, policy.wall_clock_limit)
        try:
            outcome.raise_for_status()
        except ProviderJobTimedOut:
            return self._fallback(source, request, "timeout")
        except ProviderJobFailed:
            return self._fallback(source, request, "job-failed")

        try:
            items = await client.fetch_items(handle)
        except ProviderUnavailable as exc:
            LOGGER.error("Fetching results of run %s failed: %s", handle.run_id, exc)
            return self._fallback(source, request, "fetch-failed")

        results = source.create_normalizer(self.settings).normalize(items, request)[: source.max_results]
        if not results:
            return self._fallback(source, request, "provider-empty")

        results = refine_results(results, request)
        LOGGER.info("%s search for %s returned %d results", source.name, request.destination, len(results))
        return SearchResponse(
            kind=request.kind,
            results=results,
            search_params=request.search_params(),
            source=SOURCE_PROVIDER,
            summary=summarise_results(results),
        )

    async def _start(
        self, client: ProviderClient, source: SourceConfig, request: SearchRequest
    ) -> Optional[RunHandle]:
        """Try the primary actor, then each alternate identity once."""

        job_input = source.build_input(request)
        for actor_id in source.actor_ids:
            try:
                return await client.start_run(actor_id, job_input)
            except ProviderUnavailable as exc:
                LOGGER.warning("Starting %s run with %s failed: %s", source.name, actor_id, exc)
        return None

    def _fallback(self, source: SourceConfig, request: SearchRequest, reason: str) -> SearchResponse:
        results = source.create_fallback().generate(request, reason=reason)
        LOGGER.warning("Serving fallback %s results for %s (%s)", source.name, request.destination, reason)
        return SearchResponse(
            kind=request.kind,
            results=results,
            search_params=request.search_params(),
            source=SOURCE_FALLBACK,
            summary=summarise_results(results),
            warning=f"Live results unavailable because {_FALLBACK_REASONS.get(reason, reason)}; "
            "showing sample results.",
        )


async def run_search(kind: SearchKind | str, payload: Any, settings: Settings) -> SearchResponse:
    """Validate ``payload`` and execute the full search pipeline."""

    request = create_request(kind, payload)
    return await SearchOrchestrator(settings).search(request)


async def search_hotels(payload: Mapping[str, Any], settings: Settings) -> SearchResponse:
    return await run_search(SearchKind.HOTEL, payload, settings)


async def search_flights(payload: Mapping[str, Any], settings: Settings) -> SearchResponse:
    return await run_search(SearchKind.FLIGHT, payload, settings)


async def run_searches(requests: List[SearchRequest], settings: Settings) -> List[SearchResponse]:
    """Run independent searches concurrently on the current event loop."""

    orchestrator = SearchOrchestrator(settings)
    return list(await asyncio.gather(*(orchestrator.search(request) for request in requests)))
