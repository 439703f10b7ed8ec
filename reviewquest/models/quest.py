"""
Quest payload models.

These mirror the JSON exchanged with the quests API. Unknown fields are kept
so payloads survive caching and retries unchanged.
"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class QuestType(str, Enum):
    BUG_FIX = "BUG_FIX"
    FEATURE_REQUEST = "FEATURE_REQUEST"
    IMPROVEMENT = "IMPROVEMENT"
    RESEARCH = "RESEARCH"
    OTHER = "OTHER"


class QuestPriority(str, Enum):
    HIGH = "HIGH"
    MEDIUM = "MEDIUM"
    LOW = "LOW"


class QuestState(str, Enum):
    OPEN = "OPEN"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


class XPAction(str, Enum):
    """Gamification actions reported alongside quest mutations."""

    QUEST_CREATED = "QUEST_CREATED"
    QUEST_IN_PROGRESS = "QUEST_IN_PROGRESS"
    QUEST_COMPLETED = "QUEST_COMPLETED"


class ApiModel(BaseModel):
    """Base for API payloads: camelCase aliases, extra fields preserved."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")


class Quest(ApiModel):
    """An action item, usually derived from a review."""

    id: str = Field(alias="_id")
    title: str
    details: str | None = None
    type: QuestType
    priority: QuestPriority
    state: QuestState = QuestState.OPEN
    user: str | None = None
    review_id: str | None = Field(default=None, alias="reviewId")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    updated_at: datetime | None = Field(default=None, alias="updatedAt")


class QuestFilters(ApiModel):
    type: QuestType | None = None
    priority: QuestPriority | None = None
    state: QuestState | None = None
    search: str | None = None


class StateBreakdown(ApiModel):
    open: int = 0
    in_progress: int = Field(default=0, alias="inProgress")
    done: int = 0


class PriorityBreakdown(ApiModel):
    high: int = 0
    medium: int = 0
    low: int = 0


class TypeBreakdown(ApiModel):
    bug_fix: int = Field(default=0, alias="bugFix")
    feature_request: int = Field(default=0, alias="featureRequest")
    improvement: int = 0
    research: int = 0
    other: int = 0


class QuestOverview(ApiModel):
    """Summary counts returned with every quest listing."""

    state_breakdown: StateBreakdown = Field(
        default_factory=StateBreakdown, alias="stateBreakdown"
    )
    priority_breakdown: PriorityBreakdown = Field(
        default_factory=PriorityBreakdown, alias="priorityBreakdown"
    )
    type_breakdown: TypeBreakdown = Field(
        default_factory=TypeBreakdown, alias="typeBreakdown"
    )


class QuestsResponse(ApiModel):
    """A page of quests plus overview counts."""

    quests: list[Quest] = Field(default_factory=list)
    has_more: bool = Field(default=False, alias="hasMore")
    total_count: int = Field(default=0, alias="totalCount")
    overview: QuestOverview = Field(default_factory=QuestOverview)


class CreateQuestData(ApiModel):
    title: str
    details: str | None = None
    type: QuestType
    priority: QuestPriority
    review_id: str | None = Field(default=None, alias="reviewId")
    state: QuestState | None = None


class UpdateQuestData(ApiModel):
    title: str | None = None
    details: str | None = None
    type: QuestType | None = None
    priority: QuestPriority | None = None
    state: QuestState | None = None
