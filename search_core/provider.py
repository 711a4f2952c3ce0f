"""Thin asynchronous transport for the job-based scraping provider."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import quote

import aiohttp

from .errors import ProviderUnavailable
from .models import RawRecord, RunHandle, RunStatus
from .settings import Settings

LOGGER = logging.getLogger(__name__)


def open_session(settings: Settings) -> aiohttp.ClientSession:
    """Create a session bounded by the configured per-call timeout."""

    timeout = aiohttp.ClientTimeout(total=settings.http_timeout)
    return aiohttp.ClientSession(timeout=timeout)


class ProviderClient:
    """Start runs, read their status and fetch their datasets.

    Every method performs exactly one HTTP call; retrying is left to the
    caller.
    """

    def __init__(self, settings: Settings, session: aiohttp.ClientSession) -> None:
        self.settings = settings
        self.session = session

    @property
    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.settings.api_token}",
            "Content-Type": "application/json",
        }

    def _url(self, *parts: str) -> str:
        return "/".join([self.settings.base_url, *parts])

    async def _request(self, method: str, url: str, json: Optional[Mapping[str, Any]] = None) -> Any:
        try:
            async with self.session.request(method, url, json=json, headers=self._headers) as response:
                if response.status < 200 or response.status >= 300:
                    body = await response.text()
                    raise ProviderUnavailable(f"{method} {url} failed", status=response.status, body=body)
                return await response.json(content_type=None)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as exc:
            raise ProviderUnavailable(f"{method} {url} failed: {exc!r}") from exc

    async def start_run(self, actor_id: str, job_input: Mapping[str, Any]) -> RunHandle:
        url = self._url("acts", quote(actor_id, safe="~"), "runs")
        payload = await self._request("POST", url, json=job_input)
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(data, Mapping) or not data.get("id"):
            raise ProviderUnavailable(f"Run start for {actor_id} returned no run id")
        handle = RunHandle(
            run_id=str(data["id"]),
            dataset_id=str(data.get("defaultDatasetId") or ""),
            actor_id=actor_id,
        )
        LOGGER.info("Started provider run %s for %s", handle.run_id, actor_id)
        return handle

    async def get_status(self, handle: RunHandle) -> RunStatus:
        payload = await self._request("GET", self._url("actor-runs", quote(handle.run_id, safe="")))
        data = payload.get("data") if isinstance(payload, Mapping) else None
        if not isinstance(data, Mapping):
            return RunStatus.UNKNOWN
        return RunStatus.parse(data.get("status"))

    async def fetch_items(self, handle: RunHandle) -> List[RawRecord]:
        if not handle.dataset_id:
            raise ProviderUnavailable(f"Run {handle.run_id} has no dataset")
        url = self._url("datasets", quote(handle.dataset_id, safe=""), "items")
        payload = await self._request("GET", url)
        if isinstance(payload, Mapping) and isinstance(payload.get("items"), list):
            payload = payload["items"]
        if not isinstance(payload, list):
            raise ProviderUnavailable(f"Dataset {handle.dataset_id} returned {type(payload).__name__}")
        LOGGER.info("Fetched %d records from dataset %s", len(payload), handle.dataset_id)
        return payload
