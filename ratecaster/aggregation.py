# ratecaster/aggregation.py
"""
Merges on-chain registrations with indexed rating events.

The join key is the canonical dApp id: registrations carry it from the
contract, rating rows carry it from the index, and lookups by a human
readable id are canonicalized before querying.
"""
from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Dict, Iterable, List, Sequence

import pydantic

from .categories import CategoryInfo, resolve_category
from .errors import RateCasterError, RemoteError
from .hashing import canonicalize
from .models import DappRegistration, DappReview, EnrichedDapp, ProjectStats
from .queries import GET_PROJECT_REVIEWS, REVIEWS_COLLECTION
from .validation import require_non_empty

logger = logging.getLogger(__name__)

STAR_VALUES = (1, 2, 3, 4, 5)


class ReadPolicy(str, Enum):
    """What a read does when a source fails."""
    DEGRADE = "degrade"      # log, return empty / un-enriched
    FAIL_FAST = "fail_fast"  # propagate


def index_key(dapp_id: str) -> str:
    # the index stores Bytes lower-cased
    return canonicalize(dapp_id).lower()


def parse_reviews(rows: Iterable[Dict[str, Any]]) -> List[DappReview]:
    try:
        return [DappReview.model_validate(row) for row in rows]
    except pydantic.ValidationError as e:
        raise RemoteError(f"Malformed review row from index: {e}", step="decode") from e


def compute_stats(reviews: Sequence[DappReview]) -> ProjectStats:
    """
    Count, mean and 1-5 distribution of ``reviews``.

    An empty input yields zeros rather than a division error. Out-of-range
    star values count towards the total and mean but not the distribution.
    """
    distribution = {star: 0 for star in STAR_VALUES}
    total = len(reviews)
    if total == 0:
        return ProjectStats(total_reviews=0, average_rating=0.0, rating_distribution=distribution)

    stars_sum = 0
    for review in reviews:
        stars_sum += review.star_rating
        if review.star_rating in distribution:
            distribution[review.star_rating] += 1

    return ProjectStats(
        total_reviews=total,
        average_rating=stars_sum / total,
        rating_distribution=distribution,
    )


class RatingAggregator:
    def __init__(self, index):
        self.index = index

    async def reviews_for(self, dapp_id: str) -> List[DappReview]:
        require_non_empty(dapp_id, "projectId")
        try:
            rows = await self.index.fetch_all(
                GET_PROJECT_REVIEWS, REVIEWS_COLLECTION, {"dappId": index_key(dapp_id)},
            )
            reviews = parse_reviews(rows)
        except RateCasterError as e:
            raise e.with_context("get_project_reviews", dapp_id) from e
        logger.debug("Found %d reviews for project %s", len(reviews), dapp_id)
        return reviews

    async def stats_for(self, dapp_id: str) -> ProjectStats:
        stats = compute_stats(await self.reviews_for(dapp_id))
        logger.debug(
            "Project %s stats: avg rating %.2f, total reviews: %d",
            dapp_id, stats.average_rating, stats.total_reviews,
        )
        return stats

    async def enrich_listing(
        self,
        records: Sequence[DappRegistration],
        include_ratings: bool = True,
        policy: ReadPolicy = ReadPolicy.DEGRADE,
    ) -> List[EnrichedDapp]:
        """
        Attach stats to each record, preserving input order.

        Stats are fetched concurrently. Under DEGRADE a failed fetch leaves
        that record's ``stats`` as None; under FAIL_FAST the first failure
        propagates.
        """
        enriched = [EnrichedDapp(**record.model_dump()) for record in records]
        if not include_ratings or not enriched:
            return enriched

        results = await asyncio.gather(
            *(self.stats_for(record.dapp_id) for record in enriched),
            return_exceptions=policy is ReadPolicy.DEGRADE,
        )
        for record, result in zip(enriched, results):
            if isinstance(result, RateCasterError):
                logger.warning("Ratings unavailable for %s: %s", record.dapp_id, result)
                continue
            if isinstance(result, BaseException):
                raise result
            record.stats = result
        return enriched

    @staticmethod
    def resolve_category(category_id: int) -> CategoryInfo:
        return resolve_category(category_id)
