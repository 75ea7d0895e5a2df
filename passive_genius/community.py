"""Mock community channels with session-local chat."""

from __future__ import annotations

import uuid
from typing import Dict, List

import structlog

from .errors import ChannelNotFoundError, EmptyMessageError
from .schemas import ChatMessage, CommunityChannel

logger = structlog.get_logger(__name__)


SEED_CHANNELS: List[CommunityChannel] = [
    CommunityChannel(
        id="1",
        name="SaaS Builders",
        description="For software founders and developers.",
        members=1240,
        icon="💻",
        messages=[
            ChatMessage(id="m1", user="AlexDev", text="Has anyone tried the new Stripe API for subscriptions?", timestamp="2m ago"),
            ChatMessage(id="m2", user="FounderJane", text="Yes! It made checkout flow much smoother.", timestamp="1m ago"),
        ],
    ),
    CommunityChannel(
        id="2",
        name="Dropshipping Pros",
        description="Product research, suppliers, and ads.",
        members=3500,
        icon="📦",
        messages=[
            ChatMessage(id="m1", user="EcomKing", text="Q4 is coming! Are your ads ready?", timestamp="10m ago"),
            ChatMessage(id="m2", user="NewSeller", text="Still trying to find a winning product...", timestamp="5m ago"),
        ],
    ),
    CommunityChannel(
        id="3",
        name="Content Creators",
        description="YouTube, TikTok, and blogging strategies.",
        members=890,
        icon="🎥",
        messages=[
            ChatMessage(id="m1", user="VlogStar", text="Shorts are getting crazy reach right now.", timestamp="1h ago"),
        ],
    ),
    CommunityChannel(
        id="4",
        name="Investing 101",
        description="Stocks, crypto, and real estate discussion.",
        members=5200,
        icon="📈",
        messages=[],
    ),
]


class CommunityHub:
    """Hold one session's private copy of the seeded channels."""

    def __init__(self) -> None:
        self._channels: Dict[str, CommunityChannel] = {
            channel.id: channel.model_copy(deep=True) for channel in SEED_CHANNELS
        }

    def list_channels(self, query: str | None = None) -> List[CommunityChannel]:
        """Return channels, optionally filtered by name or description."""

        channels = list(self._channels.values())
        needle = (query or "").strip().lower()
        if not needle:
            return channels
        return [
            channel
            for channel in channels
            if needle in channel.name.lower() or needle in channel.description.lower()
        ]

    def get_channel(self, channel_id: str) -> CommunityChannel:
        channel = self._channels.get(channel_id)
        if channel is None:
            raise ChannelNotFoundError(f"Unknown community channel '{channel_id}'.")
        return channel

    def post_message(self, channel_id: str, text: str) -> ChatMessage:
        """Append the user's message to a channel and return it."""

        channel = self.get_channel(channel_id)
        if not text.strip():
            raise EmptyMessageError("Message text must not be blank.")
        message = ChatMessage(
            id=uuid.uuid4().hex,
            user="You",
            text=text,
            timestamp="Just now",
            is_me=True,
        )
        channel.messages.append(message)
        logger.info("community_message_posted", channel_id=channel_id, length=len(text))
        return message
