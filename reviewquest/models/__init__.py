"""
API payload models for quests and reviews.
"""

from reviewquest.models.quest import (
    CreateQuestData,
    Quest,
    QuestFilters,
    QuestOverview,
    QuestPriority,
    QuestsResponse,
    QuestState,
    QuestType,
    UpdateQuestData,
    XPAction,
)
from reviewquest.models.review import (
    Review,
    ReviewFilters,
    ReviewOverview,
    ReviewPlatform,
    ReviewPriority,
    ReviewQuest,
    ReviewSentiment,
    ReviewsResponse,
    UpdateReviewData,
)

__all__ = [
    # Quests
    "CreateQuestData",
    "Quest",
    "QuestFilters",
    "QuestOverview",
    "QuestPriority",
    "QuestsResponse",
    "QuestState",
    "QuestType",
    "UpdateQuestData",
    "XPAction",
    # Reviews
    "Review",
    "ReviewFilters",
    "ReviewOverview",
    "ReviewPlatform",
    "ReviewPriority",
    "ReviewQuest",
    "ReviewSentiment",
    "ReviewsResponse",
    "UpdateReviewData",
]
