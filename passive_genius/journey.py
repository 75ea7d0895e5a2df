"""Application state machine and the coordinators that drive the AI gateway.

Every client session owns one :class:`AppSession`. Screens change only
through its transition methods; the async coordinators at the bottom of the
module sequence gateway calls around those transitions.

Each gateway request is tagged with the session's current generation token.
Cancelling, or starting a newer request, bumps the token so a slow response
that arrives afterwards is discarded instead of overwriting newer state.
"""

from __future__ import annotations

import asyncio
import time
import uuid
from dataclasses import dataclass
from typing import Callable, Dict, List, Tuple

import structlog

from . import llm
from .analytics import ensure_task_exists, progress_percent, summarize_projections
from .community import CommunityHub
from .errors import (
    IdeaNotFoundError,
    InvalidTransitionError,
    PlanGenerationError,
    PlanUnavailableError,
    ProfileIncompleteError,
    SessionNotFoundError,
)
from .schemas import (
    DetailedPlan,
    FavoriteToggleResponse,
    FeedbackRequest,
    IncomeIdea,
    MainTab,
    NotificationKind,
    NotificationView,
    PlanView,
    ProfileUpdate,
    Rating,
    Screen,
    SessionSnapshot,
    TaskToggleResponse,
    UserProfile,
)
from .storage import Stores

logger = structlog.get_logger(__name__)

Clock = Callable[[], float]

GENERATING_IDEAS_MESSAGE = "Generating Income Ideas..."
ANALYZING_IDEA_MESSAGE = "Analyzing idea details..."
BUILDING_PLAN_MESSAGE = "Building your custom strategy..."

IDEAS_FAILED_MESSAGE = "Failed to generate ideas. Please try again."
PLAN_FAILED_MESSAGE = "Could not generate plan details."

SELECTABLE_TABS = (MainTab.DISCOVER, MainTab.SAVED)
CANCELLABLE_SCREENS = (Screen.REFINING, Screen.PLANNING, Screen.DETAIL)


@dataclass(frozen=True)
class Notification:
    """Transient, auto-dismissing message shown over the current screen."""

    message: str
    kind: NotificationKind
    expires_at: float


class AppSession:
    """Single source of truth for one client's screens and in-memory data."""

    def __init__(
        self,
        session_id: str,
        stores: Stores,
        *,
        notification_seconds: float = 3.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self.id = session_id
        self._stores = stores
        self._notification_seconds = notification_seconds
        self._clock = clock
        self._generation = 0
        self._notification: Notification | None = None

        self.screen = Screen.ONBOARDING
        self.tab = MainTab.DISCOVER
        self.loading_message: str | None = None
        self.profile: UserProfile = stores.profile.load()
        self.ideas: List[IncomeIdea] = []
        self.selected_idea: IncomeIdea | None = None
        self.questions: List[str] = []
        self.answers: Dict[str, str] = {}
        self.plan: DetailedPlan | None = None
        self.community = CommunityHub()

    # ------------------------------------------------------------------
    # Guards and tokens
    # ------------------------------------------------------------------

    @property
    def busy(self) -> bool:
        return self.loading_message is not None

    def _require(self, *screens: Screen, action: str) -> None:
        if self.screen not in screens:
            allowed = ", ".join(screen.value for screen in screens)
            raise InvalidTransitionError(
                f"Cannot {action} from '{self.screen.value}'; allowed from: {allowed}."
            )

    def _require_idle(self, action: str) -> None:
        if self.busy:
            raise InvalidTransitionError(f"Cannot {action} while a request is in progress.")

    def _next_token(self) -> int:
        self._generation += 1
        return self._generation

    def is_current(self, token: int) -> bool:
        return token == self._generation

    def invalidate(self) -> None:
        """Orphan any in-flight request."""

        self._next_token()

    def _accept(self, token: int, operation: str) -> bool:
        if self.is_current(token):
            return True
        logger.info("stale_response_discarded", session_id=self.id, operation=operation, token=token)
        return False

    def _reset_refinement(self) -> None:
        self.selected_idea = None
        self.questions = []
        self.answers = {}
        self.plan = None

    # ------------------------------------------------------------------
    # Notifications
    # ------------------------------------------------------------------

    def notify(self, message: str, kind: NotificationKind = NotificationKind.SUCCESS) -> None:
        self._notification = Notification(
            message=message,
            kind=kind,
            expires_at=self._clock() + self._notification_seconds,
        )

    @property
    def notification(self) -> Notification | None:
        """Return the live notification, dropping it once expired."""

        if self._notification and self._clock() >= self._notification.expires_at:
            self._notification = None
        return self._notification

    # ------------------------------------------------------------------
    # Profile and navigation
    # ------------------------------------------------------------------

    def update_profile(self, update: ProfileUpdate) -> UserProfile:
        self._require(Screen.ONBOARDING, Screen.MAIN_APP, action="edit the profile")
        self._require_idle("edit the profile")
        changes = update.model_dump(exclude_none=True)
        self.profile = self.profile.model_copy(update=changes)
        self._stores.profile.save(self.profile)
        return self.profile

    def switch_tab(self, tab: MainTab) -> None:
        self._require(Screen.MAIN_APP, action="switch tabs")
        self._require_idle("switch tabs")
        self.tab = tab

    def view_saved(self) -> None:
        """Open the saved tab straight from onboarding, without generating ideas."""

        self._require(Screen.ONBOARDING, action="view saved ideas")
        self._require_idle("view saved ideas")
        if not self.favorites():
            raise InvalidTransitionError("There are no saved ideas to view.")
        self.tab = MainTab.SAVED
        self.screen = Screen.MAIN_APP

    def return_to_onboarding(self) -> None:
        self._require(Screen.MAIN_APP, action="return to onboarding")
        self._require_idle("return to onboarding")
        self.screen = Screen.ONBOARDING

    def go_back(self) -> None:
        """Cancel the pending request or leave the current screen.

        Idea generation falls back to the main screen when earlier ideas are
        still listed, onboarding otherwise. A question fetch on the main
        screen is dropped in place. Refinement, planning and detail return to
        the main screen without their refinement state.
        """

        if self.screen is Screen.GENERATING:
            self.invalidate()
            self.loading_message = None
            self.screen = Screen.MAIN_APP if self.ideas else Screen.ONBOARDING
            return
        if self.screen is Screen.MAIN_APP and self.busy:
            self.invalidate()
            self._reset_refinement()
            self.loading_message = None
            return
        self._require(*CANCELLABLE_SCREENS, action="go back")
        self.invalidate()
        self._reset_refinement()
        self.loading_message = None
        self.screen = Screen.MAIN_APP

    # ------------------------------------------------------------------
    # Idea generation
    # ------------------------------------------------------------------

    def begin_idea_generation(self) -> int:
        self._require(Screen.ONBOARDING, Screen.MAIN_APP, action="generate ideas")
        self._require_idle("generate ideas")
        missing = self.profile.missing_required_fields()
        if missing:
            raise ProfileIncompleteError(missing)
        self.screen = Screen.GENERATING
        self.loading_message = GENERATING_IDEAS_MESSAGE
        return self._next_token()

    def complete_idea_generation(self, token: int, ideas: List[IncomeIdea]) -> bool:
        """Apply generated ideas; an empty list sends the user back to onboarding."""

        if not self._accept(token, "generate_ideas"):
            return False
        self.loading_message = None
        if not ideas:
            self.screen = Screen.ONBOARDING
            self.notify(IDEAS_FAILED_MESSAGE, NotificationKind.INFO)
            return True
        self.ideas = list(ideas)
        self.tab = MainTab.DISCOVER
        self.screen = Screen.MAIN_APP
        return True

    # ------------------------------------------------------------------
    # Selection, refinement and planning
    # ------------------------------------------------------------------

    def find_idea(self, idea_id: str) -> IncomeIdea:
        """Look an idea up among generated ideas, favorites and the open plan."""

        for idea in self.ideas:
            if idea.id == idea_id:
                return idea
        for idea in self._stores.favorites.load():
            if idea.id == idea_id:
                return idea
        if self.selected_idea and self.selected_idea.id == idea_id:
            return self.selected_idea
        raise IdeaNotFoundError(f"Unknown idea '{idea_id}'.")

    def begin_idea_selection(self, idea_id: str) -> Tuple[int, IncomeIdea]:
        self._require(Screen.MAIN_APP, action="select an idea")
        self._require_idle("select an idea")
        if self.tab not in SELECTABLE_TABS:
            raise InvalidTransitionError(f"Ideas cannot be selected from the '{self.tab.value}' tab.")
        idea = self.find_idea(idea_id)
        self._reset_refinement()
        self.selected_idea = idea
        self.loading_message = ANALYZING_IDEA_MESSAGE
        return self._next_token(), idea

    def show_refinement(self, token: int, questions: List[str]) -> bool:
        if not self._accept(token, "generate_questions"):
            return False
        self.loading_message = None
        self.questions = list(questions)
        self.answers = {}
        self.screen = Screen.REFINING
        return True

    def skip_refinement(self, token: int) -> int | None:
        """Go straight to planning with no answers; return the planning token."""

        if not self._accept(token, "generate_questions"):
            return None
        self.questions = []
        self.answers = {}
        self.screen = Screen.PLANNING
        self.loading_message = BUILDING_PLAN_MESSAGE
        return self._next_token()

    def submit_refinement(self, answers: Dict[str, str]) -> int:
        self._require(Screen.REFINING, action="submit refinement answers")
        if self.selected_idea is None:
            raise InvalidTransitionError("No idea is being refined.")
        known = set(self.questions)
        self.answers = {
            question: answer.strip()
            for question, answer in answers.items()
            if question in known and answer.strip()
        }
        self.screen = Screen.PLANNING
        self.loading_message = BUILDING_PLAN_MESSAGE
        return self._next_token()

    def complete_planning(self, token: int, plan: DetailedPlan) -> bool:
        if not self._accept(token, "generate_plan"):
            return False
        self.loading_message = None
        self.plan = plan
        self.screen = Screen.DETAIL
        return True

    def fail_planning(self, token: int) -> bool:
        if not self._accept(token, "generate_plan"):
            return False
        self.loading_message = None
        self._reset_refinement()
        self.screen = Screen.MAIN_APP
        self.notify(PLAN_FAILED_MESSAGE, NotificationKind.INFO)
        return True

    # ------------------------------------------------------------------
    # Favorites, progress and feedback
    # ------------------------------------------------------------------

    def favorites(self) -> List[IncomeIdea]:
        return self._stores.favorites.load()

    def toggle_favorite(self, idea_id: str) -> FavoriteToggleResponse:
        idea = self.find_idea(idea_id)
        added = self._stores.favorites.toggle(idea)
        if added:
            self.notify("Saved to favorites")
        else:
            self.notify("Removed from favorites", NotificationKind.INFO)
        return FavoriteToggleResponse(idea_id=idea.id, is_favorite=added, favorites=self.favorites())

    def require_selected_idea(self) -> IncomeIdea:
        if self.selected_idea is None:
            raise PlanUnavailableError("No idea is open for this session.")
        return self.selected_idea

    def _open_plan(self) -> Tuple[IncomeIdea, DetailedPlan]:
        if self.screen is not Screen.DETAIL or self.plan is None or self.selected_idea is None:
            raise PlanUnavailableError("No plan is open for this session.")
        return self.selected_idea, self.plan

    def plan_view(self) -> PlanView:
        idea, plan = self._open_plan()
        completed = self._stores.progress.load(idea.id)
        return PlanView(
            idea=idea,
            plan=plan,
            is_favorite=self._stores.favorites.contains(idea.id),
            completed_tasks=completed,
            progress=progress_percent(plan, completed),
            summary=summarize_projections(plan.projections),
        )

    def toggle_task(self, phase_index: int, task_index: int) -> TaskToggleResponse:
        idea, plan = self._open_plan()
        ensure_task_exists(plan, phase_index, task_index)
        done = self._stores.progress.toggle_task(idea.id, phase_index, task_index)
        completed = self._stores.progress.load(idea.id)
        return TaskToggleResponse(
            phase_index=phase_index,
            task_index=task_index,
            completed=done,
            progress=progress_percent(plan, completed),
        )

    def rate_plan(self, rating: Rating) -> None:
        idea, _ = self._open_plan()
        logger.info("plan_rated", session_id=self.id, idea_id=idea.id, rating=rating.value)
        self.notify("Thanks for your feedback!")

    def record_feedback(self, feedback: FeedbackRequest) -> None:
        logger.info(
            "feedback_received",
            session_id=self.id,
            mood=feedback.mood.value if feedback.mood else None,
            text=feedback.text,
        )
        self.notify("Feedback sent! Thank you.")

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def snapshot(self) -> SessionSnapshot:
        notification = self.notification
        return SessionSnapshot(
            session_id=self.id,
            screen=self.screen,
            tab=self.tab,
            loading_message=self.loading_message,
            profile=self.profile,
            ideas=self.ideas,
            favorite_ids=[idea.id for idea in self.favorites()],
            selected_idea=self.selected_idea,
            questions=self.questions,
            answers=self.answers,
            plan=self.plan if self.screen is Screen.DETAIL else None,
            notification=(
                NotificationView(message=notification.message, kind=notification.kind)
                if notification
                else None
            ),
        )


class SessionRegistry:
    """Keep live sessions so consecutive requests share one state machine."""

    def __init__(
        self,
        stores: Stores,
        *,
        notification_seconds: float = 3.0,
        clock: Clock = time.monotonic,
    ) -> None:
        self._stores = stores
        self._notification_seconds = notification_seconds
        self._clock = clock
        self._sessions: Dict[str, AppSession] = {}

    @property
    def stores(self) -> Stores:
        return self._stores

    def create(self) -> AppSession:
        session = AppSession(
            uuid.uuid4().hex,
            self._stores,
            notification_seconds=self._notification_seconds,
            clock=self._clock,
        )
        self._sessions[session.id] = session
        logger.info("session_created", session_id=session.id)
        return session

    def get(self, session_id: str) -> AppSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(f"No session found for '{session_id}'.")
        return session

    def remove(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is None:
            raise SessionNotFoundError(f"No session found for '{session_id}'.")
        session.invalidate()
        logger.info("session_removed", session_id=session_id)


# ---------------------------------------------------------------------------
# Coordinators
# ---------------------------------------------------------------------------


async def generate_ideas(session: AppSession) -> None:
    """Onboarding submit: generating -> main app, or back to onboarding."""

    token = session.begin_idea_generation()
    profile = session.profile
    try:
        ideas = await asyncio.to_thread(llm.generate_ideas, profile)
    except Exception:
        logger.exception("idea_generation_crashed", session_id=session.id)
        session.complete_idea_generation(token, [])
        raise
    session.complete_idea_generation(token, ideas)


async def _build_plan(session: AppSession, token: int, idea: IncomeIdea, answers: Dict[str, str]) -> None:
    profile = session.profile
    try:
        plan = await asyncio.to_thread(llm.generate_plan, idea, profile, answers)
    except PlanGenerationError as exc:
        logger.warning("plan_generation_failed", session_id=session.id, idea_id=idea.id, error=str(exc))
        session.fail_planning(token)
        return
    except Exception:
        logger.exception("plan_generation_crashed", session_id=session.id, idea_id=idea.id)
        session.fail_planning(token)
        raise
    session.complete_planning(token, plan)


async def select_idea(session: AppSession, idea_id: str) -> None:
    """Fetch refinement questions, or skip straight to planning without them."""

    token, idea = session.begin_idea_selection(idea_id)
    try:
        questions = await asyncio.to_thread(llm.generate_questions, idea)
    except Exception:
        logger.exception("question_generation_crashed", session_id=session.id, idea_id=idea.id)
        questions = []

    if questions:
        session.show_refinement(token, questions)
        return
    plan_token = session.skip_refinement(token)
    if plan_token is not None:
        await _build_plan(session, plan_token, idea, {})


async def submit_refinement(session: AppSession, answers: Dict[str, str]) -> None:
    token = session.submit_refinement(answers)
    idea = session.selected_idea
    await _build_plan(session, token, idea, dict(session.answers))
