# File: bot_core/guess_bot.py
import random
from typing import Any, List, Optional

from botbuilder.core import (  # type: ignore
    ActivityHandler,
    MessageFactory,
    Storage,
    TurnContext,
)
from botbuilder.dialogs import DialogContext, DialogTurnResult, DialogTurnStatus  # type: ignore
from botbuilder.schema import Attachment, ChannelAccount  # type: ignore

from config import Config
from core_logic.intent_classifier import IntentClassifier, TopIntent, create_intent_classifier
from dialogs import DialogRuntime, GuessDialog
from utils.logging_config import clear_turn, get_logger, start_turn
from .cards import load_menu_card
from .state_store import BotStateStore

logger = get_logger(__name__)

GAME_COMMAND = "guess"
RESET_MESSAGE = "Let's start over. You have my full attention. How can I help?"


def find_command(value: Any) -> Optional[str]:
    """Depth-first search of a card payload for the first string ``command`` field."""
    if isinstance(value, dict):
        command = value.get("command")
        if isinstance(command, str):
            return command
        children = value.values()
    elif isinstance(value, (list, tuple)):
        children = value
    else:
        return None
    for child in children:
        command = find_command(child)
        if command is not None:
            return command
    return None


def is_game_command(turn_context: TurnContext) -> bool:
    activity = turn_context.activity
    if activity.text and activity.text.strip().lower() == GAME_COMMAND:
        return True
    return find_command(activity.value) == GAME_COMMAND


class GuessBot(ActivityHandler):
    """
    Turn dispatcher: cancel on request, otherwise let the active dialog take
    the message, and when nothing is active either start a game or echo.
    State is saved at the end of every turn.
    """

    def __init__(
        self,
        state_store: BotStateStore,
        intent_classifier: Optional[IntentClassifier] = None,
        random_source: Optional[random.Random] = None,
        menu_card: Optional[Attachment] = None,
        show_menu_after_game: bool = True,
    ):
        self.state_store = state_store
        self.intent_classifier = intent_classifier
        self.menu_card = menu_card or load_menu_card()
        self.show_menu_after_game = show_menu_after_game

        self.guess_dialog = GuessDialog(state_store, random_source)
        self.dialogs = DialogRuntime(state_store)
        self.dialogs.add(self.guess_dialog)
        self.dialogs.add(self.guess_dialog.prompt)

    @classmethod
    def from_config(cls, app_config: Config, storage: Storage) -> "GuessBot":
        settings = app_config.settings
        return cls(
            BotStateStore(storage),
            intent_classifier=create_intent_classifier(settings),
            menu_card=load_menu_card(settings.welcome_card_path),
            show_menu_after_game=settings.show_menu_after_game,
        )

    @property
    def storage(self) -> Storage:
        return self.state_store.storage

    async def on_turn(self, turn_context: TurnContext):
        activity = turn_context.activity
        start_turn(
            activity.conversation.id if activity.conversation else None,
            activity.from_property.id if activity.from_property else None,
            activity.type,
        )
        await super().on_turn(turn_context)

        # Persist user and conversation state even when nothing changed this turn.
        await self.state_store.save_all(turn_context)
        clear_turn()

    async def on_members_added_activity(self, members_added: List[ChannelAccount], turn_context: TurnContext):
        for member in members_added:
            # Greet anyone that was not the target (recipient) of this message.
            if member.id != turn_context.activity.recipient.id:
                await self._send_menu(turn_context)
                logger.info("welcomed member", member_id=member.id)

    async def on_message_activity(self, turn_context: TurnContext):
        dc = await self.dialogs.create_context(turn_context)
        top_intent = await self._get_top_intent(turn_context)

        if top_intent == TopIntent.CANCEL:
            await dc.cancel_all_dialogs()
            await turn_context.send_activity(RESET_MESSAGE)
            logger.info("conversation reset", intent=top_intent)

        # If there's a current dialog, let it have control and process the input.
        dialog_result = await dc.continue_dialog()

        if dialog_result.status == DialogTurnStatus.Complete and self.show_menu_after_game:
            await self._send_menu(turn_context)

        if not turn_context.responded:
            await self._route(dc, dialog_result, top_intent)

    async def _route(self, dc: DialogContext, dialog_result: DialogTurnResult, top_intent: Optional[str]):
        status = dialog_result.status
        if status == DialogTurnStatus.Empty:
            # Nothing on the stack, so this turn is ours to answer.
            if top_intent == TopIntent.GAME or is_game_command(dc.context):
                logger.info("starting game", intent=top_intent)
                await dc.begin_dialog(self.guess_dialog.id)
            else:
                logger.debug("echoing message")
                await dc.context.send_activity(f"You said '{dc.context.activity.text or ''}'")
        elif status == DialogTurnStatus.Complete:
            await dc.end_dialog()
        elif status in (DialogTurnStatus.Waiting, DialogTurnStatus.Cancelled):
            pass
        else:
            logger.warning("unexpected dialog status, cancelling all dialogs", status=str(status))
            await dc.cancel_all_dialogs()

    async def _get_top_intent(self, turn_context: TurnContext) -> Optional[str]:
        if self.intent_classifier is None or not turn_context.activity.text:
            return None
        return await self.intent_classifier.recognize(turn_context)

    async def _send_menu(self, turn_context: TurnContext):
        await turn_context.send_activity(MessageFactory.attachment(self.menu_card))
