"""OpenAI-powered gateway for ideas, refinement questions and launch plans."""

from __future__ import annotations

import json
from dataclasses import dataclass
from textwrap import dedent
from typing import Any, Dict, List

import structlog
from openai import APIError, OpenAI
from pydantic import BaseModel, ValidationError

from .config import get_settings
from .errors import PlanGenerationError
from .schemas import DetailedPlan, IncomeIdea, UserProfile

logger = structlog.get_logger(__name__)

IDEA_COUNT = 5
QUESTION_COUNT = 3

EMPTY_RESPONSE_QUESTIONS = [
    "What is your target audience?",
    "Do you have existing tools?",
    "What is your main goal?",
]
FALLBACK_QUESTIONS = [
    "What specific niche do you want to target?",
    "How do you plan to find your first customer?",
    "Do you have any existing audience?",
]


@dataclass(frozen=True)
class PromptSpec:
    """Container describing how to call the LLM for one request."""

    system_prompt: str
    user_prompt: str
    model: str | None = None
    temperature: float = 0.7
    max_tokens: int = 1500


class _IdeasPayload(BaseModel):
    ideas: List[IncomeIdea]


class _QuestionsPayload(BaseModel):
    questions: List[str]


ClientCache = tuple[str, OpenAI]
_client_cache: ClientCache | None = None


def _get_client() -> OpenAI | None:
    """Return a cached OpenAI client when an API key is configured."""

    global _client_cache
    settings = get_settings()
    if not settings.has_llm_key:
        return None
    api_key = settings.openai_api_key
    if _client_cache and _client_cache[0] == api_key:
        return _client_cache[1]
    client = OpenAI(api_key=api_key)
    _client_cache = (api_key, client)
    return client


def _parse_structured_response(raw_text: str) -> Any | None:
    """Attempt to coerce the model output into JSON."""

    text = raw_text.strip()
    if text.startswith("```"):
        lines = [line.rstrip() for line in text.splitlines()]
        if len(lines) >= 2:
            lines = lines[1:]
            if lines and lines[-1].strip() == "```":
                lines = lines[:-1]
            text = "\n".join(lines).strip()
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        return None


def _invoke(client: OpenAI, spec: PromptSpec, *, operation: str) -> Any | None:
    """Run one chat completion and return the decoded JSON body, if any."""

    try:
        response = client.chat.completions.create(
            model=spec.model or get_settings().model,
            messages=[
                {"role": "system", "content": spec.system_prompt.strip()},
                {"role": "user", "content": spec.user_prompt.strip()},
            ],
            temperature=spec.temperature,
            max_tokens=spec.max_tokens,
            response_format={"type": "json_object"},
        )
    except APIError as exc:
        logger.warning("llm_request_failed", operation=operation, error=str(exc))
        return None

    message = response.choices[0].message.content if response.choices else None
    if not message:
        logger.warning("llm_empty_response", operation=operation)
        return None
    parsed = _parse_structured_response(message)
    if parsed is None:
        logger.warning("llm_unparsable_response", operation=operation)
    return parsed


def _answers_context(answers: Dict[str, str]) -> str:
    if not answers:
        return "No additional answers provided."
    return "\n\n".join(f"Q: {question}\nA: {answer}" for question, answer in answers.items())


# ---------------------------------------------------------------------------
# Ideas
# ---------------------------------------------------------------------------


def _ideas_prompt(profile: UserProfile) -> PromptSpec:
    user_prompt = dedent(
        f"""
        Generate {IDEA_COUNT} distinct, viable, and modern passive income business ideas based on this user profile:
        - Skills: {profile.skills}
        - Available Budget: {profile.budget}
        - Time Commitment: {profile.time_commitment}
        - Interests: {profile.interests}

        Focus on digital products, SaaS, content creation, dropshipping, or investment strategies that fit the constraints.
        Ensure the estimated revenue is realistic for the first 6 months.

        Respond in JSON with the following structure:
        {{
          "ideas": [
            {{
              "id": string,
              "title": string,
              "description": string,
              "difficulty": "Easy" | "Medium" | "Hard",
              "estimatedMonthlyRevenue": string,
              "setupCost": string,
              "timeToRevenue": string,
              "tags": [string]
            }}
          ]
        }}
        """
    )
    return PromptSpec(
        system_prompt=(
            "You are an expert business consultant and entrepreneur. You provide realistic, "
            "actionable, and data-backed business ideas."
        ),
        user_prompt=user_prompt,
        temperature=0.8,
        max_tokens=1500,
    )


def generate_ideas(profile: UserProfile) -> List[IncomeIdea]:
    """Return passive-income ideas tailored to *profile*.

    Any failure yields an empty list; callers treat that as "no ideas
    available" rather than as an exception.
    """

    client = _get_client()
    if client is None:
        logger.warning("llm_unavailable", operation="generate_ideas")
        return []

    data = _invoke(client, _ideas_prompt(profile), operation="generate_ideas")
    if data is None:
        return []
    if isinstance(data, list):
        data = {"ideas": data}
    try:
        payload = _IdeasPayload.model_validate(data)
    except ValidationError as exc:
        logger.warning("llm_invalid_payload", operation="generate_ideas", errors=exc.error_count())
        return []

    ideas: List[IncomeIdea] = []
    seen: set[str] = set()
    for idea in payload.ideas:
        if idea.id in seen:
            continue
        seen.add(idea.id)
        ideas.append(idea)
    logger.info("ideas_generated", count=len(ideas))
    return ideas


# ---------------------------------------------------------------------------
# Refinement questions
# ---------------------------------------------------------------------------


def _questions_prompt(idea: IncomeIdea) -> PromptSpec:
    user_prompt = dedent(
        f"""
        I want to execute this business idea: "{idea.title}".
        Description: {idea.description}

        Ask me {QUESTION_COUNT} critical short questions that will help you create a more specific and
        successful business plan for me. Focus on niche, specific skills, or distribution channels.

        Respond in JSON: {{"questions": [string]}}
        """
    )
    return PromptSpec(
        system_prompt="You are a pragmatic business coach who asks sharp, short questions.",
        user_prompt=user_prompt,
        temperature=0.7,
        max_tokens=400,
    )


def generate_questions(idea: IncomeIdea) -> List[str]:
    """Return refinement questions for *idea*; never an empty list."""

    client = _get_client()
    if client is None:
        logger.warning("llm_unavailable", operation="generate_questions")
        return list(FALLBACK_QUESTIONS)

    data = _invoke(client, _questions_prompt(idea), operation="generate_questions")
    if data is None:
        return list(FALLBACK_QUESTIONS)
    try:
        payload = _QuestionsPayload.model_validate(data)
    except ValidationError as exc:
        logger.warning("llm_invalid_payload", operation="generate_questions", errors=exc.error_count())
        return list(FALLBACK_QUESTIONS)

    questions = [question.strip() for question in payload.questions if question.strip()]
    if not questions:
        return list(EMPTY_RESPONSE_QUESTIONS)
    return questions


# ---------------------------------------------------------------------------
# Detailed plan
# ---------------------------------------------------------------------------


def _plan_prompt(idea: IncomeIdea, profile: UserProfile, answers: Dict[str, str]) -> PromptSpec:
    user_prompt = dedent(
        f"""
        Create a detailed launch plan for this passive income idea: "{idea.title}".
        Context: {idea.description}

        The user has the following profile (strictly use this to tailor the steps):
        - Skills: {profile.skills} (leverage these skills in the execution phases)
        - Budget: {profile.budget} (ensure the plan fits this budget)
        - Time: {profile.time_commitment} (ensure tasks are manageable within this time)

        User specific refinement answers:
        {_answers_context(answers)}

        I need:
        1. An executive overview incorporating the user's specific answers and constraints.
        2. A specific marketing strategy.
        3. 3 distinct execution phases (e.g. Setup, Launch, Scale) with actionable tasks.
        4. A projected 6-month financial forecast (Month 1 to Month 6) with estimated revenue, expenses, and profit.

        Respond in JSON with:
        {{
          "ideaId": string,
          "overview": string,
          "marketingStrategy": string,
          "steps": [{{"phase": string, "tasks": [string]}}],
          "projections": [{{"month": string, "revenue": number, "expenses": number, "profit": number}}]
        }}
        """
    )
    return PromptSpec(
        system_prompt=(
            "You are a strategic business planner. Be specific, avoid fluff. Use realistic financial "
            "numbers based on the user's budget and skills."
        ),
        user_prompt=user_prompt,
        temperature=0.6,
        max_tokens=2000,
    )


def generate_plan(idea: IncomeIdea, profile: UserProfile, answers: Dict[str, str] | None = None) -> DetailedPlan:
    """Return a detailed launch plan or raise :class:`PlanGenerationError`."""

    client = _get_client()
    if client is None:
        raise PlanGenerationError("No OpenAI API key configured.")

    data = _invoke(client, _plan_prompt(idea, profile, answers or {}), operation="generate_plan")
    if data is None:
        raise PlanGenerationError("No usable response from the AI service.")
    try:
        plan = DetailedPlan.model_validate(data)
    except ValidationError as exc:
        raise PlanGenerationError("AI service returned a malformed plan.") from exc

    logger.info("plan_generated", idea_id=idea.id, phases=len(plan.steps))
    # The service does not know our ids; link the plan to the requested idea.
    return plan.model_copy(update={"idea_id": idea.id})
