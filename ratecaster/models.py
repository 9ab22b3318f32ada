# ratecaster/models.py
from __future__ import annotations

from typing import Dict, Optional

from pydantic import BaseModel, Field


class DappReview(BaseModel):
    """One rating event as reported by the index (or the live listener)."""
    model_config = {"populate_by_name": True}

    id: str
    attestation_id: str = Field(alias="attestationId")
    dapp_id: str = Field(alias="dappId")
    star_rating: int = Field(alias="starRating")
    review_text: str = Field(default="", alias="reviewText")
    rater: str = ""
    timestamp: Optional[int] = None


class DappRegistration(BaseModel):
    """dApp metadata as stored on-chain, with the category resolved for display."""
    model_config = {"populate_by_name": True}

    dapp_id: str = Field(alias="dappId")
    name: str
    description: str = ""
    url: str = ""
    image_url: str = Field(default="", alias="imageUrl")
    category_id: int = Field(alias="categoryId")
    category: str = ""
    category_group: str = Field(default="", alias="categoryGroup")
    owner: str = ""


class ProjectStats(BaseModel):
    model_config = {"populate_by_name": True}

    total_reviews: int = Field(default=0, alias="totalReviews")
    average_rating: float = Field(default=0.0, alias="averageRating")
    rating_distribution: Dict[int, int] = Field(
        default_factory=lambda: {star: 0 for star in range(1, 6)},
        alias="ratingDistribution",
    )


class EnrichedDapp(DappRegistration):
    # None when enrichment was skipped or the index read degraded
    stats: Optional[ProjectStats] = None

    @property
    def average_rating(self) -> Optional[float]:
        return self.stats.average_rating if self.stats else None

    @property
    def total_reviews(self) -> Optional[int]:
        return self.stats.total_reviews if self.stats else None
