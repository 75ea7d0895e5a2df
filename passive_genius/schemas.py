"""Pydantic models and enums for the PassiveGenius API."""

from __future__ import annotations

from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model speaking camelCase on the wire and snake_case in Python."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Difficulty(str, Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class Screen(str, Enum):
    """Enumerate the screens the client can be asked to render."""

    ONBOARDING = "onboarding"
    GENERATING = "generating"
    MAIN_APP = "main_app"
    REFINING = "refining"
    PLANNING = "planning"
    DETAIL = "detail"


class MainTab(str, Enum):
    """Enumerate the bottom-navigation tabs of the main screen."""

    DISCOVER = "discover"
    SAVED = "saved"
    COMMUNITY = "community"
    PROFILE = "profile"


class NotificationKind(str, Enum):
    SUCCESS = "success"
    INFO = "info"


class Mood(str, Enum):
    HAPPY = "happy"
    NEUTRAL = "neutral"
    SAD = "sad"


class Rating(str, Enum):
    UP = "up"
    DOWN = "down"


# ---------------------------------------------------------------------------
# Domain entities
# ---------------------------------------------------------------------------


REQUIRED_PROFILE_FIELDS = ("skills", "budget", "time_commitment")


class UserProfile(CamelModel):
    """What the user tells us about themselves during onboarding."""

    skills: str = ""
    budget: str = ""
    time_commitment: str = ""
    interests: str = ""

    def missing_required_fields(self) -> List[str]:
        """Return the required fields that are blank, in form order."""

        return [name for name in REQUIRED_PROFILE_FIELDS if not getattr(self, name).strip()]


class IncomeIdea(CamelModel):
    """A single passive-income business concept proposed by the AI service."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str = Field(..., min_length=1)
    title: str
    description: str
    difficulty: Difficulty
    estimated_monthly_revenue: str
    setup_cost: str
    time_to_revenue: str
    tags: List[str] = Field(default_factory=list)


class BusinessPlanStep(CamelModel):
    phase: str
    tasks: List[str] = Field(default_factory=list)


class FinancialProjection(CamelModel):
    """One month of the forecast; profit is taken as reported, never recomputed."""

    month: str
    revenue: float
    expenses: float
    profit: float


class DetailedPlan(CamelModel):
    """Execution strategy generated for one idea, profile and answer set."""

    idea_id: str = ""
    overview: str
    marketing_strategy: str
    steps: List[BusinessPlanStep] = Field(default_factory=list)
    projections: List[FinancialProjection] = Field(default_factory=list)


class ChatMessage(CamelModel):
    id: str
    user: str
    text: str
    timestamp: str
    is_me: bool = False
    avatar: Optional[str] = None


class CommunityChannel(CamelModel):
    id: str
    name: str
    description: str
    members: int
    icon: str
    messages: List[ChatMessage] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Request payloads
# ---------------------------------------------------------------------------


class ProfileUpdate(CamelModel):
    """Partial profile edit; omitted fields keep their current value."""

    skills: Optional[str] = None
    budget: Optional[str] = None
    time_commitment: Optional[str] = None
    interests: Optional[str] = None


class TabRequest(CamelModel):
    tab: MainTab


class RefinementSubmission(CamelModel):
    answers: Dict[str, str] = Field(default_factory=dict)


class FeedbackRequest(CamelModel):
    mood: Optional[Mood] = None
    text: str = ""


class RatingRequest(CamelModel):
    rating: Rating


class MessageRequest(CamelModel):
    text: str


# ---------------------------------------------------------------------------
# Response payloads
# ---------------------------------------------------------------------------


class NotificationView(CamelModel):
    message: str
    kind: NotificationKind


class PlanSummary(CamelModel):
    """Headline numbers shown above the financial chart."""

    total_revenue: float
    total_expenses: float
    total_profit: float
    average_margin: int
    first_profit_month: str


class SessionSnapshot(CamelModel):
    """Everything the client needs to render the current screen."""

    session_id: str
    screen: Screen
    tab: MainTab
    loading_message: Optional[str] = None
    profile: UserProfile
    ideas: List[IncomeIdea] = Field(default_factory=list)
    favorite_ids: List[str] = Field(default_factory=list)
    selected_idea: Optional[IncomeIdea] = None
    questions: List[str] = Field(default_factory=list)
    answers: Dict[str, str] = Field(default_factory=dict)
    plan: Optional[DetailedPlan] = None
    notification: Optional[NotificationView] = None


class PlanView(CamelModel):
    """Detail screen payload: the plan plus the user's progress on it."""

    idea: IncomeIdea
    plan: DetailedPlan
    is_favorite: bool
    completed_tasks: Dict[str, bool]
    progress: int
    summary: PlanSummary


class FavoriteToggleResponse(CamelModel):
    idea_id: str
    is_favorite: bool
    favorites: List[IncomeIdea]


class TaskToggleResponse(CamelModel):
    phase_index: int
    task_index: int
    completed: bool
    progress: int


class ShareResponse(CamelModel):
    title: str
    text: str
