"""Declarative description of a provider-backed search source."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Sequence, Type

from search_core.config import SearchRequest
from search_core.fallback import FallbackProvider
from search_core.normalizer import REVIEW_SCALE, RatingScale, ResultNormalizer
from search_core.settings import PollPolicy, Settings

InputBuilder = Callable[[SearchRequest], Dict[str, Any]]


@dataclass(frozen=True)
class SourceConfig:
    """Everything the orchestrator needs to run one kind of search."""

    name: str
    actor_ids: Sequence[str]
    build_input: InputBuilder
    normalizer: Type[ResultNormalizer]
    poll_policy: Callable[[Settings], PollPolicy]
    rating_scale: RatingScale = REVIEW_SCALE
    default_currency: str = "USD"
    max_results: int = 20

    def create_normalizer(self, settings: Settings) -> ResultNormalizer:
        return self.normalizer(
            rating_scale=self.rating_scale,
            default_currency=self.default_currency,
            missing_price=settings.missing_price,
        )

    def create_fallback(self) -> FallbackProvider:
        return FallbackProvider(rating_scale=self.rating_scale, default_currency=self.default_currency)
