"""
Dialog stack runtime for the guess bot.

The stack itself is ``botbuilder.dialogs``: a ``DialogSet`` whose ``DialogState``
lives in the conversation-scoped ``DialogState`` slot of the state store. The
dispatcher and the game dialog only use the ``DialogContext`` it hands out
(begin / continue / end / cancel-all and the turn status).
"""
import logging

from botbuilder.core import TurnContext  # type: ignore
from botbuilder.dialogs import Dialog, DialogContext, DialogSet  # type: ignore

from bot_core.state_store import BotStateStore, StateScope
from state_models import DIALOG_STATE_PROPERTY

logger = logging.getLogger(__name__)


class DialogRuntime:
    def __init__(self, state_store: BotStateStore, property_name: str = DIALOG_STATE_PROPERTY):
        self.state_store = state_store
        self.property_name = property_name
        self.dialog_set = DialogSet(state_store.accessor(StateScope.CONVERSATION, property_name))

    def add(self, dialog: Dialog) -> "DialogRuntime":
        self.dialog_set.add(dialog)
        logger.debug(f"Registered dialog '{dialog.id}'")
        return self

    async def find(self, dialog_id: str) -> Dialog:
        return await self.dialog_set.find(dialog_id)

    async def create_context(self, turn_context: TurnContext) -> DialogContext:
        """Load this conversation's dialog stack and wrap it for the current turn."""
        return await self.dialog_set.create_context(turn_context)
