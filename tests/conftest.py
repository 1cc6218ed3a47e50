"""
Shared fixtures: an in-memory bot wired to the Bot Framework TestAdapter.
"""
import sys
import os
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from typing import Any, List, Optional

import pytest
from botbuilder.core import MemoryStorage  # type: ignore
from botbuilder.core.adapters import TestAdapter  # type: ignore
from botbuilder.dialogs import DialogInstance  # type: ignore
from botbuilder.schema import (  # type: ignore
    Activity,
    ActivityTypes,
    ChannelAccount,
    ConversationAccount,
)

from bot_core.guess_bot import GuessBot
from bot_core.state_store import BotStateStore
from state_models import GuessRound

CHANNEL_ID = "test"
BOT_ID = "bot"


class FixedRandom:
    """Random source that hands out the given secrets in order, repeating the last one."""

    def __init__(self, *values: int):
        self.values = list(values)
        self.calls = []

    def randrange(self, start, stop):
        self.calls.append((start, stop))
        if len(self.values) > 1:
            return self.values.pop(0)
        return self.values[0]


class Conversation:
    """Drives one user's conversation with a bot through the TestAdapter."""

    def __init__(self, bot: GuessBot, conversation_id: str = "convo-1", user_id: str = "user-1"):
        self.bot = bot
        self.conversation_id = conversation_id
        self.user_id = user_id
        self.adapter = TestAdapter(bot.on_turn)

    def _activity(self, **fields) -> Activity:
        return Activity(
            channel_id=CHANNEL_ID,
            service_url="https://test.com",
            from_property=ChannelAccount(id=self.user_id, name="User"),
            recipient=ChannelAccount(id=BOT_ID, name="Bot"),
            conversation=ConversationAccount(id=self.conversation_id),
            **fields,
        )

    def _drain(self) -> List[Activity]:
        replies = list(self.adapter.activity_buffer)
        self.adapter.activity_buffer.clear()
        return replies

    async def say(self, text: Optional[str] = None, value: Any = None) -> List[Activity]:
        await self.adapter.receive_activity(self._activity(type=ActivityTypes.message, text=text, value=value))
        return self._drain()

    async def say_texts(self, text: Optional[str] = None, value: Any = None) -> List[str]:
        return [reply.text for reply in await self.say(text, value)]

    async def join(self, *member_ids: str) -> List[Activity]:
        await self.adapter.receive_activity(self._activity(
            type=ActivityTypes.conversation_update,
            members_added=[ChannelAccount(id=member_id) for member_id in member_ids],
        ))
        return self._drain()

    async def guess_round(self) -> GuessRound:
        key = f"{CHANNEL_ID}/users/{self.user_id}"
        items = await self.bot.storage.read([key])
        return GuessRound.model_validate(items[key]["GuessState"])

    async def dialog_stack(self) -> List[DialogInstance]:
        """Saved dialog stack for this conversation, innermost dialog first."""
        key = f"{CHANNEL_ID}/conversations/{self.conversation_id}"
        items = await self.bot.storage.read([key])
        return items[key]["DialogState"].dialog_stack


@pytest.fixture
def storage():
    return MemoryStorage()


@pytest.fixture
def state_store(storage):
    return BotStateStore(storage)


@pytest.fixture
def make_bot(state_store):
    def _make_bot(*secrets: int, intent_classifier=None, show_menu_after_game: bool = False, storage=None) -> GuessBot:
        return GuessBot(
            BotStateStore(storage) if storage is not None else state_store,
            intent_classifier=intent_classifier,
            random_source=FixedRandom(*(secrets or (42,))),
            show_menu_after_game=show_menu_after_game,
        )
    return _make_bot


@pytest.fixture
def conversation(make_bot):
    return Conversation(make_bot(42))


@pytest.fixture
def make_conversation():
    return Conversation
