"""Bounded status polling for provider runs."""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable, Optional

from .errors import ProviderUnavailable
from .models import PollOutcome, RunHandle, RunStatus
from .provider import ProviderClient

LOGGER = logging.getLogger(__name__)

Sleeper = Callable[[float], Awaitable[None]]


class JobPoller:
    """Resolve a run handle to a terminal status within an attempt budget."""

    def __init__(self, client: ProviderClient, sleep: Sleeper = asyncio.sleep) -> None:
        self.client = client
        self._sleep = sleep

    async def poll(
        self,
        handle: RunHandle,
        interval: float,
        max_attempts: int,
        wall_clock_limit: Optional[float] = None,
    ) -> PollOutcome:
        """Check the run status at most ``max_attempts`` times.

        Each attempt waits ``interval`` seconds first. Status-check errors use
        up an attempt but do not stop the loop. Exhausting the budget, or the
        optional ``wall_clock_limit``, yields an outcome with ``timed_out``
        set, which callers report separately from a failed run.
        """

        progress = {"attempts": 0, "status": RunStatus.UNKNOWN}

        async def _loop() -> PollOutcome:
            while progress["attempts"] < max_attempts:
                await self._sleep(interval)
                progress["attempts"] += 1
                attempt = progress["attempts"]
                try:
                    status = await self.client.get_status(handle)
                except ProviderUnavailable as exc:
                    LOGGER.warning(
                        "Status check %d/%d for run %s failed: %s", attempt, max_attempts, handle.run_id, exc
                    )
                    continue
                progress["status"] = status
                LOGGER.debug("Run %s status %s (%d/%d)", handle.run_id, status.value, attempt, max_attempts)
                if status.is_terminal:
                    return PollOutcome(status=status, attempts=attempt)
            return PollOutcome(status=progress["status"], attempts=progress["attempts"], timed_out=True)

        if wall_clock_limit is None:
            outcome = await _loop()
        else:
            try:
                outcome = await asyncio.wait_for(_loop(), timeout=wall_clock_limit)
            except asyncio.TimeoutError:
                outcome = PollOutcome(status=progress["status"], attempts=progress["attempts"], timed_out=True)

        if outcome.timed_out:
            LOGGER.warning(
                "Run %s did not finish after %d status checks (last status %s)",
                handle.run_id,
                outcome.attempts,
                outcome.status.value,
            )
        elif outcome.failed:
            LOGGER.error("Run %s ended with status %s", handle.run_id, outcome.status.value)
        return outcome
