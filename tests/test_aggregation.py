# tests/test_aggregation.py
import pytest

from ratecaster.aggregation import RatingAggregator, ReadPolicy, compute_stats, index_key, parse_reviews
from ratecaster.errors import RemoteError, TransportError, ValidationError
from ratecaster.hashing import canonicalize
from ratecaster.models import DappRegistration, DappReview
from ratecaster.subgraph import SubgraphClient


def _review(stars, n=1):
    return DappReview(
        id=str(n), attestation_id=str(n), dapp_id="0x01", star_rating=stars,
    )


def _record(url, category_id=412):
    return DappRegistration(dapp_id=canonicalize(url), name=url, url=url, category_id=category_id)


class FlakyIndex:
    """fetch_all fails for the listed dApp keys."""

    def __init__(self, failing=()):
        self.failing = {index_key(k) for k in failing}
        self.requested = []

    async def fetch_all(self, query, collection, variables=None):
        key = variables["dappId"]
        self.requested.append(key)
        if key in self.failing:
            raise TransportError("HTTP error! status: 503", step="query")
        return [{"id": "r", "attestationId": "r", "dappId": key, "starRating": 4}]


# ────────────────────────────────────────────────────────────
# Stats arithmetic
# ────────────────────────────────────────────────────────────

class TestComputeStats:
    def test_empty_set_is_all_zero(self):
        stats = compute_stats([])
        assert stats.total_reviews == 0
        assert stats.average_rating == 0
        assert stats.rating_distribution == {1: 0, 2: 0, 3: 0, 4: 0, 5: 0}

    def test_five_five_four(self):
        stats = compute_stats([_review(5, 1), _review(5, 2), _review(4, 3)])
        assert stats.total_reviews == 3
        assert stats.average_rating == pytest.approx(14 / 3)
        assert stats.rating_distribution == {1: 0, 2: 0, 3: 0, 4: 1, 5: 2}

    def test_out_of_range_star_counts_in_mean_only(self):
        stats = compute_stats([_review(5, 1), _review(7, 2)])
        assert stats.total_reviews == 2
        assert stats.average_rating == 6
        assert sum(stats.rating_distribution.values()) == 1


class TestParseReviews:
    def test_aliases(self):
        [review] = parse_reviews([{
            "id": "a", "attestationId": "a", "dappId": "0x01", "starRating": 3, "reviewText": "ok",
            "rater": "0xabc",
        }])
        assert review.star_rating == 3
        assert review.review_text == "ok"

    def test_malformed_row_is_remote_error(self):
        with pytest.raises(RemoteError):
            parse_reviews([{"id": "a"}])


# ────────────────────────────────────────────────────────────
# Aggregator against the fake index
# ────────────────────────────────────────────────────────────

class TestRatingAggregator:
    async def test_stats_for_unrated_dapp(self, index):
        agg = RatingAggregator(SubgraphClient("https://index.test/api", session=index))
        stats = await agg.stats_for("https://nobody.example")
        assert stats.total_reviews == 0
        assert stats.average_rating == 0

    async def test_stats_for_queries_canonical_lowercase_key(self, index):
        for stars in (5, 5, 4):
            index.add_review("https://example.com", stars)
        index.add_review("https://other.example", 1)
        agg = RatingAggregator(SubgraphClient("https://index.test/api", session=index))

        stats = await agg.stats_for("https://example.com")

        assert stats.total_reviews == 3
        assert stats.rating_distribution[5] == 2
        sent = index.requests[0]["json"]["variables"]["dappId"]
        assert sent == canonicalize("https://example.com").lower()

    async def test_reviews_for_rejects_empty_id(self, index):
        agg = RatingAggregator(SubgraphClient("https://index.test/api", session=index))
        with pytest.raises(ValidationError):
            await agg.reviews_for("")
        assert index.requests == []

    async def test_index_failure_carries_context(self):
        agg = RatingAggregator(FlakyIndex(failing=["https://a.example"]))
        with pytest.raises(TransportError) as exc:
            await agg.reviews_for("https://a.example")
        assert exc.value.operation == "get_project_reviews"
        assert exc.value.identifier == "https://a.example"

    async def test_resolve_category(self):
        assert RatingAggregator.resolve_category(412).group_name == "DeFi"


class TestEnrichListing:
    async def test_order_preserved(self):
        records = [_record("https://%d.example" % i) for i in range(5)]
        enriched = await RatingAggregator(FlakyIndex()).enrich_listing(records)
        assert [e.dapp_id for e in enriched] == [r.dapp_id for r in records]
        assert all(e.total_reviews == 1 for e in enriched)

    async def test_without_ratings_skips_index(self):
        index = FlakyIndex()
        enriched = await RatingAggregator(index).enrich_listing([_record("https://a.example")],
                                                               include_ratings=False)
        assert enriched[0].stats is None
        assert index.requested == []

    async def test_degrade_leaves_failed_stats_empty(self):
        records = [_record("https://a.example"), _record("https://b.example")]
        agg = RatingAggregator(FlakyIndex(failing=[records[0].dapp_id]))

        enriched = await agg.enrich_listing(records, policy=ReadPolicy.DEGRADE)

        assert enriched[0].stats is None
        assert enriched[0].average_rating is None
        assert enriched[1].average_rating == 4

    async def test_fail_fast_propagates(self):
        records = [_record("https://a.example"), _record("https://b.example")]
        agg = RatingAggregator(FlakyIndex(failing=[records[1].dapp_id]))
        with pytest.raises(TransportError):
            await agg.enrich_listing(records, policy=ReadPolicy.FAIL_FAST)

    async def test_empty_listing(self):
        assert await RatingAggregator(FlakyIndex()).enrich_listing([]) == []
