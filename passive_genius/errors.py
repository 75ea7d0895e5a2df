"""Exception hierarchy shared by the gateway, stores and state machine."""

from __future__ import annotations


class PassiveGeniusError(Exception):
    """Base class for every error raised by the backend."""


class GatewayError(PassiveGeniusError):
    """The text-generation service failed or returned an unusable payload."""


class PlanGenerationError(GatewayError):
    """A detailed plan could not be produced for the requested idea."""


class InvalidTransitionError(PassiveGeniusError):
    """The requested action is not allowed on the current screen."""


class ProfileIncompleteError(PassiveGeniusError):
    """Idea generation needs skills, budget and time commitment."""

    def __init__(self, missing: list[str]) -> None:
        self.missing = missing
        super().__init__(f"Missing required profile fields: {', '.join(missing)}")


class SessionNotFoundError(PassiveGeniusError):
    pass


class IdeaNotFoundError(PassiveGeniusError):
    pass


class PlanUnavailableError(PassiveGeniusError):
    """No plan is on screen for this session."""


class TaskNotFoundError(PassiveGeniusError):
    pass


class ChannelNotFoundError(PassiveGeniusError):
    pass


class EmptyMessageError(PassiveGeniusError):
    pass
