"""Caller-side refinement and statistics over normalised results."""
from __future__ import annotations

from typing import Dict, Iterable, List, Sequence

import pandas as pd

from .config import SearchRequest
from .models import NormalizedResult


def results_to_dataframe(results: Iterable[NormalizedResult]) -> pd.DataFrame:
    """Tabulate the fields refinement works on, keyed by provider position."""

    records = [
        {
            "position": position,
            "price": result.price.amount,
            "rating": result.rating,
        }
        for position, result in enumerate(results)
    ]
    return pd.DataFrame.from_records(records, columns=["position", "price", "rating"])


def filter_by_price(df: pd.DataFrame, request: SearchRequest) -> pd.DataFrame:
    """Keep results inside the requested price range."""

    if df.empty:
        return df
    if request.min_price is not None:
        df = df[df["price"] >= request.min_price]
    if request.max_price is not None:
        df = df[df["price"] <= request.max_price]
    return df


def filter_by_rating(df: pd.DataFrame, request: SearchRequest) -> pd.DataFrame:
    """Keep results rated at least the requested minimum."""

    if request.min_rating is None or df.empty:
        return df
    return df[df["rating"] >= request.min_rating]


def sort_results(df: pd.DataFrame, request: SearchRequest) -> pd.DataFrame:
    if not request.sort_by or df.empty:
        return df
    column = request.sort_by.lstrip("-")
    ascending = not request.sort_by.startswith("-")
    # mergesort is stable, so ties keep provider order
    return df.sort_values(by=column, ascending=ascending, kind="mergesort")


def refine_results(results: Sequence[NormalizedResult], request: SearchRequest) -> List[NormalizedResult]:
    """Apply the optional filters, sort order and limit of ``request``."""

    wants_refinement = any(
        value is not None
        for value in (request.min_price, request.max_price, request.min_rating, request.sort_by, request.limit)
    )
    if not wants_refinement or not results:
        return list(results)

    df = results_to_dataframe(results)
    df = filter_by_price(df, request)
    df = filter_by_rating(df, request)
    df = sort_results(df, request)
    if request.limit is not None:
        df = df.head(request.limit)
    return [results[int(position)] for position in df["position"]]


def summarise_results(results: Iterable[NormalizedResult]) -> Dict[str, float]:
    """Return simple price statistics across results that carry a price."""

    valid_prices = [result.price.amount for result in results if result.price.amount > 0]

    if not valid_prices:
        return {"count": 0, "averagePrice": 0.0, "minPrice": 0.0}

    count = len(valid_prices)
    return {
        "count": count,
        "averagePrice": float(sum(valid_prices) / count),
        "minPrice": float(min(valid_prices)),
    }
