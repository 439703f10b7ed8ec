"""
Review payload models.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field

from reviewquest.models.quest import ApiModel


class ReviewPlatform(str, Enum):
    GOOGLE_PLAY = "GooglePlay"
    APPLE_STORE = "AppleStore"
    CHROME_EXT = "ChromeExt"


class ReviewSentiment(str, Enum):
    POSITIVE = "POSITIVE"
    NEGATIVE = "NEGATIVE"


class ReviewQuest(str, Enum):
    """Classification label assigned by the ML pipeline."""

    BUG = "BUG"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    OTHER = "OTHER"


class ReviewPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class Review(ApiModel):
    id: str = Field(alias="_id")
    user: str | None = None
    app_id: str | None = Field(default=None, alias="appId")
    name: str
    comment: str
    date: datetime | None = None
    rating: int = Field(ge=1, le=5)
    sentiment: ReviewSentiment
    quest: ReviewQuest | None = None
    priority: ReviewPriority | None = None
    quest_id: str | None = Field(default=None, alias="questId")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class ReviewFilters(ApiModel):
    platform: ReviewPlatform | None = None
    rating: int | None = None
    sentiment: ReviewSentiment | None = None
    quest: ReviewQuest | None = None
    search: str | None = None


class SentimentBreakdown(ApiModel):
    positive: int = 0
    negative: int = 0


class PlatformBreakdown(ApiModel):
    google_play: int = Field(default=0, alias="GooglePlay")
    apple_store: int = Field(default=0, alias="AppleStore")
    chrome_ext: int = Field(default=0, alias="ChromeExt")


class QuestBreakdown(ApiModel):
    bug: int = 0
    feature_request: int = Field(default=0, alias="featureRequest")
    other: int = 0


class ReviewOverview(ApiModel):
    sentiment_breakdown: SentimentBreakdown = Field(
        default_factory=SentimentBreakdown, alias="sentimentBreakdown"
    )
    platform_breakdown: PlatformBreakdown = Field(
        default_factory=PlatformBreakdown, alias="platformBreakdown"
    )
    quest_breakdown: QuestBreakdown = Field(
        default_factory=QuestBreakdown, alias="questBreakdown"
    )


class ReviewsResponse(ApiModel):
    reviews: list[Review] = Field(default_factory=list)
    has_more: bool = Field(default=False, alias="hasMore")
    total_count: int = Field(default=0, alias="totalCount")
    overview: ReviewOverview = Field(default_factory=ReviewOverview)


class UpdateReviewData(ApiModel):
    quest: ReviewQuest | None = None
    priority: ReviewPriority | None = None
    sentiment: ReviewSentiment | None = None
    quest_id: str | None = Field(default=None, alias="questId")
