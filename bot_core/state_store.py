# File: bot_core/state_store.py
import logging
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple

from botbuilder.core import (  # type: ignore
    BotState,
    ConversationState,
    StatePropertyAccessor,
    Storage,
    TurnContext,
    UserState,
)

logger = logging.getLogger(__name__)


class StateScope(str, Enum):
    USER = "user"
    CONVERSATION = "conversation"


class BotStateStore:
    """
    Scope + key access to bot state.

    Wraps one UserState and one ConversationState over the same Storage so the
    dialog runtime and the game only ever deal with named slots.
    """

    def __init__(self, storage: Storage):
        self.storage = storage
        self.user_state = UserState(storage)
        self.conversation_state = ConversationState(storage)
        self._accessors: Dict[Tuple[StateScope, str], StatePropertyAccessor] = {}

    def _state_for(self, scope: StateScope) -> BotState:
        if scope == StateScope.USER:
            return self.user_state
        return self.conversation_state

    def accessor(self, scope: StateScope, key: str) -> StatePropertyAccessor:
        accessor = self._accessors.get((scope, key))
        if accessor is None:
            accessor = self._state_for(scope).create_property(key)
            self._accessors[(scope, key)] = accessor
        return accessor

    async def get(
        self,
        turn_context: TurnContext,
        scope: StateScope,
        key: str,
        default_factory: Optional[Callable[[], Any]] = None,
    ) -> Any:
        return await self.accessor(scope, key).get(turn_context, default_factory)

    async def set(self, turn_context: TurnContext, scope: StateScope, key: str, value: Any) -> None:
        await self.accessor(scope, key).set(turn_context, value)

    async def save_all(self, turn_context: TurnContext) -> None:
        await self.conversation_state.save_changes(turn_context, force=False)
        await self.user_state.save_changes(turn_context, force=False)
        logger.debug(f"Saved conversation and user state for activity {turn_context.activity.id}")
